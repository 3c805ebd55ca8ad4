"""
Aesthetic Accessory Library

Maps an aesthetic focus to the accessory work injected after the
performance block of a workout.
"""

import logging
from typing import List, Mapping, Optional, Tuple, Union

from ..errors import ValidationError
from ..models import AestheticFocus, Exercise
from ..reference import ACCESSORY_MATRIX, AccessoryDefinition
from .volume import READINESS_SOURCE, VolumeScaler

logger = logging.getLogger(__name__)

ACCESSORY_CATEGORY = "accessory"


class AccessoryLibrary:
    """Focus -> accessory exercises, with sets already scaled to readiness."""

    def __init__(
        self,
        scaler: Optional[VolumeScaler] = None,
        matrix: Optional[Mapping[AestheticFocus, Tuple[AccessoryDefinition, ...]]] = None
    ):
        self.scaler = scaler or VolumeScaler()
        self.matrix = matrix if matrix is not None else ACCESSORY_MATRIX

    def get_definitions(self, focus: Union[str, AestheticFocus, None]) -> Tuple[AccessoryDefinition, ...]:
        """Raw table entries for a focus. Unknown focus -> empty tuple."""
        try:
            focus = AestheticFocus.parse(focus)
        except ValidationError:
            logger.debug(f"No accessories for unknown focus: {focus!r}")
            return ()
        return self.matrix.get(focus, ())

    def get_accessories(self, focus: Union[str, AestheticFocus, None], readiness: float) -> List[Exercise]:
        """
        Build accessory exercises for a focus.

        Args:
            focus: Aesthetic focus ('v_taper', 'glutes', 'toned', 'functional')
            readiness: Readiness score (1-10); <= 6 reduces sets by 0.7

        Returns:
            List of aesthetic Exercises; empty for 'functional' or unknown focus
        """
        accessories = []
        for definition in self.get_definitions(focus):
            exercise = Exercise(
                name=definition.name,
                category=ACCESSORY_CATEGORY,
                sets=definition.sets,
                reps=definition.reps,
                rationale=definition.rationale,
                aesthetic=True,
                extra={'target': definition.target, 'tooltip': definition.rationale},
            )
            if self.scaler.is_reduced(readiness):
                exercise = self.scaler.apply_factor(
                    exercise, READINESS_SOURCE, self.scaler.reduction_factor
                )
            accessories.append(exercise)

        return accessories
