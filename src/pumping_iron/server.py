#!/usr/bin/env python3
"""Pumping Iron MCP Server.

This MCP server exposes the adaptive exercise engine as tools:
- Workout adaptation (70/30 split, focus accessories, readiness scaling)
- Injury-aware substitutions and safe fallbacks
- Progression analysis and exercise selection
- Aesthetic focus and readiness updates

Results are returned as JSON text.
"""

from mcp.server import Server
from mcp.server.stdio import stdio_server
import mcp.types as types
from typing import Any, Optional
import asyncio
import json
import logging

from pumping_iron.adaptation import ExerciseAdapter
from pumping_iron.config import (
    build_identity_provider,
    build_preference_store,
    configure_logging,
    load_settings,
)
from pumping_iron.events import READINESS_UPDATED, EventBus

logger = logging.getLogger(__name__)

# Initialize server
server = Server("pumping-iron-mcp")

# Adapter is created on first use so preferences load inside the event loop
_adapter: Optional[ExerciseAdapter] = None


async def get_adapter() -> ExerciseAdapter:
    """Get the shared adapter, creating it on first use."""
    global _adapter
    if _adapter is None:
        settings = load_settings()
        _adapter = await ExerciseAdapter.create(
            preference_store=build_preference_store(settings),
            event_bus=EventBus(),
            identity_provider=build_identity_provider(settings),
            settings=settings,
        )
    return _adapter


def _json(payload: Any) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]


@server.list_tools()
async def list_tools_handler() -> list[types.Tool]:
    """List available tools."""
    return [
        # =====================================================================
        # ADAPTATION TOOLS
        # =====================================================================
        types.Tool(
            name="adapt_workout",
            description="""Adapt a workout to the user's aesthetic focus and readiness.

Splits exercises ~70% performance / ~30% aesthetic, appends focus accessories
(v_taper, glutes, toned), and reduces accessory volume when readiness <= 6.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "workout": {
                        "type": "object",
                        "description": "Workout with an 'exercises' list of {name, sets, reps}"
                    },
                    "readiness_score": {
                        "type": "number",
                        "description": "Readiness 1-10 (default: last known)"
                    }
                },
                "required": ["workout"]
            }
        ),
        types.Tool(
            name="get_split_info",
            description="Current aesthetic focus, split percentages and readiness level.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        types.Tool(
            name="update_aesthetic_focus",
            description="Persist the user's aesthetic focus (v_taper, glutes, toned, functional).",
            inputSchema={
                "type": "object",
                "properties": {
                    "focus": {
                        "type": "string",
                        "enum": ["v_taper", "glutes", "toned", "functional"]
                    }
                },
                "required": ["focus"]
            }
        ),
        types.Tool(
            name="update_readiness",
            description="Publish a new readiness score (1-10) to the engine.",
            inputSchema={
                "type": "object",
                "properties": {
                    "readiness_score": {"type": "number"}
                },
                "required": ["readiness_score"]
            }
        ),

        # =====================================================================
        # SUBSTITUTION TOOLS
        # =====================================================================
        types.Tool(
            name="suggest_substitutions",
            description="""Suggest up to two alternatives for an exercise.

Filters by disliked terms, pain location (knee, lower back, shoulder) and
equipment/time constraints. Pain filters remove unsafe alternatives outright.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "exercise_name": {"type": "string"},
                    "dislikes": {
                        "type": "array",
                        "items": {"type": "string"}
                    },
                    "pain_location": {"type": "string"},
                    "equipment": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Available equipment"
                    },
                    "time": {
                        "type": "number",
                        "description": "Maximum minutes"
                    }
                },
                "required": ["exercise_name"]
            }
        ),
        types.Tool(
            name="get_alternates",
            description="All known alternatives for an exercise, unfiltered.",
            inputSchema={
                "type": "object",
                "properties": {
                    "exercise_name": {"type": "string"}
                },
                "required": ["exercise_name"]
            }
        ),
        types.Tool(
            name="get_fallback_alternatives",
            description="""Always-non-empty safe alternatives: body-part-specific list,
then generic safe list, then bodyweight list.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "exercise_name": {"type": "string"},
                    "pain_location": {"type": "string"},
                    "equipment": {
                        "type": "array",
                        "items": {"type": "string"}
                    },
                    "time": {"type": "number"}
                },
                "required": ["exercise_name"]
            }
        ),

        # =====================================================================
        # PROGRESSION TOOLS
        # =====================================================================
        types.Tool(
            name="get_progression",
            description="Progressing / plateaued / regressing exercises over the last 30 days.",
            inputSchema={
                "type": "object",
                "properties": {
                    "sessions": {
                        "type": "array",
                        "items": {"type": "object"},
                        "description": "Sessions: {start_at, exercises: [{name, weight, reps, rpe}]}"
                    }
                },
                "required": ["sessions"]
            }
        ),
        types.Tool(
            name="select_exercise",
            description="""Pick the best next exercise from candidates using progression
trend, plateau assistance, experience level and recent RPE.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "candidates": {
                        "type": "array",
                        "items": {"type": "string"}
                    },
                    "user_profile": {
                        "type": "object",
                        "description": "{experience, sessions}"
                    },
                    "target_muscle_group": {"type": "string"}
                },
                "required": ["candidates"]
            }
        ),
    ]


def _constraints(arguments: dict[str, Any]) -> dict[str, Any]:
    return {'equipment': arguments.get('equipment'), 'time': arguments.get('time')}


@server.call_tool()
async def call_tool_handler(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}

    try:
        adapter = await get_adapter()
    except Exception as e:
        logger.error(f"Error creating adapter: {str(e)}", exc_info=True)
        return [types.TextContent(type="text", text=f"❌ Error: {str(e)}")]

    try:
        if name == "adapt_workout":
            result = adapter.adapt_workout(arguments["workout"], arguments.get("readiness_score"))
            return _json(result.to_dict() if hasattr(result, 'to_dict') else result)

        elif name == "get_split_info":
            return _json(adapter.get_split_info().to_dict())

        elif name == "update_aesthetic_focus":
            saved = await adapter.update_aesthetic_focus(arguments["focus"])
            return _json({"saved": saved, "aesthetic_focus": adapter.aesthetic_focus.value})

        elif name == "update_readiness":
            adapter.event_bus.publish(
                READINESS_UPDATED,
                {"readiness": {"readiness_score": arguments["readiness_score"]}}
            )
            return _json({"readiness_level": adapter.readiness_level})

        elif name == "suggest_substitutions":
            result = adapter.suggest_substitutions(
                arguments["exercise_name"],
                dislikes=arguments.get("dislikes") or [],
                pain_location=arguments.get("pain_location"),
                constraints=_constraints(arguments),
            )
            return _json(result.to_dict())

        elif name == "get_alternates":
            return _json([a.to_dict() for a in adapter.get_alternates(arguments["exercise_name"])])

        elif name == "get_fallback_alternatives":
            result = adapter.get_fallback_alternatives(
                arguments["exercise_name"],
                pain_location=arguments.get("pain_location"),
                constraints=_constraints(arguments),
            )
            return _json(result.to_dict())

        elif name == "get_progression":
            return _json(adapter.get_user_progression_data(arguments["sessions"]).to_dict())

        elif name == "select_exercise":
            result = adapter.select_exercise_for_user(
                arguments["candidates"],
                arguments.get("user_profile") or {},
                target_muscle_group=arguments.get("target_muscle_group"),
            )
            return _json(result.to_dict())

        else:
            return [types.TextContent(
                type="text",
                text=f"❌ Unknown tool: {name}"
            )]

    except KeyError as e:
        return [types.TextContent(type="text", text=f"❌ Missing argument: {e}")]
    except Exception as e:
        logger.error(f"Error in {name}: {str(e)}", exc_info=True)
        return [types.TextContent(type="text", text=f"❌ Error: {str(e)}")]


async def main():
    """Run the MCP server."""
    configure_logging(load_settings())
    logger.info("Starting Pumping Iron MCP Server")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    except Exception as e:
        logger.error(f"Server error: {str(e)}", exc_info=True)
        raise
    finally:
        if _adapter is not None:
            _adapter.close()
        logger.info("Pumping Iron MCP Server stopped")


def run():
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
