"""Command transformation, validation, execution and result shaping.

Usage:
    from assistant_core.commands import CommandExecutor, CommandTransformer
"""

from assistant_core.commands.deduplication import collect_fetched_schema_ids, deduplicate_commands
from assistant_core.commands.executor import CommandExecutor, summarize_batch
from assistant_core.commands.filtering import filter_action_data, filter_query_data
from assistant_core.commands.titles import DataTitleBuilder, format_result_data
from assistant_core.commands.transformer import CommandTransformer
from assistant_core.commands.validation import CommandValidator
from assistant_core.commands.verbalizer import ActionVerbalizer

__all__ = [
    "ActionVerbalizer",
    "CommandExecutor",
    "CommandTransformer",
    "CommandValidator",
    "DataTitleBuilder",
    "collect_fetched_schema_ids",
    "deduplicate_commands",
    "filter_action_data",
    "filter_query_data",
    "format_result_data",
    "summarize_batch",
]
