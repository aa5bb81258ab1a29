"""Text front end for the poker engine."""

from .display import format_event, format_showdown_results, parse_action, prompt_for_action

__all__ = ["format_event", "format_showdown_results", "parse_action", "prompt_for_action"]
