"""
Exercise Substitution

Ranks alternatives for a named exercise, filtered by dislikes, pain location
and equipment/time constraints. Injury safety wins: a pain filter removes
alternatives outright, it never just demotes them.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import NotFound
from ..models import Alternative, FallbackResult, SubstitutionConstraints, SubstitutionResult
from ..reference import (
    BODY_PART_FALLBACKS,
    BODYWEIGHT_ALTERNATIVES,
    GENERIC_SAFE_ALTERNATIVES,
    SUBSTITUTION_RULES,
    PainRule,
    get_pain_rule,
    keywords_in,
)

MAX_SUGGESTIONS = 2

# Fallback levels, most to least specific
BODY_PART_SPECIFIC = 'body_part_specific'
GENERIC_SAFE = 'generic_safe'
BODYWEIGHT = 'bodyweight'

ConstraintsLike = Union[SubstitutionConstraints, Mapping, None]


def _dislike_terms(dislikes: Union[str, Iterable[str], None]) -> List[str]:
    if not dislikes:
        return []
    if isinstance(dislikes, str):
        dislikes = [dislikes]
    return [d.strip().lower() for d in dislikes if d and d.strip()]


def remove_disliked(alternatives: Sequence[Alternative],
                    dislikes: Union[str, Iterable[str], None]) -> List[Alternative]:
    """Drop alternatives whose name contains any disliked term."""
    terms = _dislike_terms(dislikes)
    return [alt for alt in alternatives
            if not any(term in alt.name.lower() for term in terms)]


def apply_pain_modifications(alternatives: Sequence[Alternative],
                             rule: Optional[PainRule]) -> List[Alternative]:
    """
    Exclude alternatives that load the painful area, then move preferred
    movements to the front. The sort is stable, so table order is kept
    within each group.
    """
    if rule is None:
        return list(alternatives)

    safe = [alt for alt in alternatives
            if not keywords_in(alt.name, rule.excluded_keywords)]
    return sorted(safe, key=lambda alt: 0 if keywords_in(alt.name, rule.preferred_keywords) else 1)


def apply_constraints(alternatives: Sequence[Alternative],
                      constraints: SubstitutionConstraints) -> List[Alternative]:
    """
    Equipment is an allow-list, time a maximum in minutes. Alternatives that
    do not declare equipment or time pass the corresponding check.
    """
    if constraints.is_empty:
        return list(alternatives)

    allowed = None
    if constraints.equipment:
        allowed = {e.strip().lower() for e in constraints.equipment}

    result = []
    for alt in alternatives:
        if allowed is not None and alt.equipment is not None and alt.equipment.lower() not in allowed:
            continue
        if constraints.time and alt.estimated_time is not None and alt.estimated_time > constraints.time:
            continue
        result.append(alt)
    return result


class SubstitutionResolver:
    """Resolves substitutions from a rule table keyed by lower-cased exercise name."""

    def __init__(
        self,
        rules: Optional[Mapping[str, Tuple[Alternative, ...]]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.rules = rules if rules is not None else SUBSTITUTION_RULES
        self.logger = logger or logging.getLogger(__name__)

    def get_rule(self, exercise_name: str) -> Tuple[Alternative, ...]:
        """
        Alternatives for an exercise, in table order.

        Raises:
            NotFound: If no rule exists for the exercise
        """
        alternatives = self.rules.get((exercise_name or '').strip().lower())
        if alternatives is None:
            raise NotFound(f"No substitution rule for {exercise_name}")
        return alternatives

    def suggest_substitutions(
        self,
        exercise_name: str,
        dislikes: Union[str, Iterable[str], None] = (),
        pain_location: Optional[str] = None,
        constraints: ConstraintsLike = None
    ) -> SubstitutionResult:
        """
        Suggest up to two alternatives for an exercise.

        Args:
            exercise_name: Exercise to replace (case-insensitive)
            dislikes: Terms; alternatives whose name contains one are dropped
            pain_location: e.g. 'knee', 'lower back', 'shoulder'
            constraints: Equipment allow-list and/or max time in minutes

        Returns:
            SubstitutionResult; never raises
        """
        try:
            alternatives = self.get_rule(exercise_name)

            filtered = remove_disliked(alternatives, dislikes)
            filtered = apply_pain_modifications(filtered, get_pain_rule(pain_location))
            filtered = apply_constraints(filtered, SubstitutionConstraints.coerce(constraints))

            top = filtered[:MAX_SUGGESTIONS]
            if top:
                message = f"Suggested alternatives for {exercise_name}"
            else:
                message = f"No suitable alternatives found for {exercise_name}"
            return SubstitutionResult(alternatives=top, message=message)

        except NotFound:
            return SubstitutionResult(
                alternatives=[],
                message=f"No substitutions available for {exercise_name}"
            )
        except Exception as e:
            self.logger.error(f"Error suggesting substitutions for {exercise_name}: {e}", exc_info=True)
            return SubstitutionResult(alternatives=[], message="Unable to suggest alternatives")

    def get_alternates(self, exercise_name: str) -> List[Alternative]:
        """All alternatives for an exercise, unfiltered. Unknown -> []."""
        try:
            return list(self.get_rule(exercise_name))
        except NotFound:
            return []
        except Exception as e:
            self.logger.error(f"Error getting alternates for {exercise_name}: {e}", exc_info=True)
            return []

    def get_fallback_alternatives(
        self,
        exercise_name: str,
        pain_location: Optional[str] = None,
        constraints: ConstraintsLike = None
    ) -> FallbackResult:
        """
        Always return something safe, walking down the fallback chain:
        body-part-specific list, generic safe list, then bodyweight list.

        The bodyweight list is unconditional and ignores constraints.
        """
        reason = None
        try:
            constraints = SubstitutionConstraints.coerce(constraints)
            rule = get_pain_rule(pain_location)

            if rule is not None:
                candidates = apply_constraints(BODY_PART_FALLBACKS.get(rule.location, ()), constraints)
                if candidates:
                    return self._fallback(
                        exercise_name, candidates, BODY_PART_SPECIFIC,
                        f"Safe alternatives for {exercise_name} with {rule.location} pain"
                    )
                reason = f"No {rule.location} alternatives matched constraints"
            elif pain_location:
                reason = f"No safe list for pain location '{pain_location}'"

            candidates = apply_constraints(GENERIC_SAFE_ALTERNATIVES, constraints)
            if candidates:
                return self._fallback(
                    exercise_name, candidates, GENERIC_SAFE,
                    f"General safe alternatives for {exercise_name}", reason
                )
            reason = "No generic alternatives matched constraints"

        except Exception as e:
            self.logger.error(f"Fallback chain failed for {exercise_name}: {e}", exc_info=True)
            reason = f"Error: {e}"

        return self._fallback(
            exercise_name, list(BODYWEIGHT_ALTERNATIVES), BODYWEIGHT,
            f"Bodyweight alternatives for {exercise_name}", reason
        )

    def _fallback(self, exercise_name: str, alternatives: List[Alternative], level: str,
                  message: str, reason: Optional[str] = None) -> FallbackResult:
        self.logger.info(
            f"EXERCISE_FALLBACK exercise={exercise_name} level={level} "
            f"count={len(alternatives)} reason={reason}"
        )
        return FallbackResult(
            alternatives=list(alternatives),
            fallback_level=level,
            message=message,
            fallback_reason=reason,
        )
