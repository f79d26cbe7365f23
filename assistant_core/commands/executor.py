"""Command Executor - runs one batch of commands through the dispatcher.

Per command, in order:
- cancellation check (CANCELLED, never an exception)
- schema fetch already known from session history or earlier in the
  batch: CACHED, no dispatch
- parameter validation (FAILED with a verbalized description)
- dispatch, then filtering of the payload for history and formatting of
  a prompt fragment

Any exception is caught at the single-command boundary and degrades that
command to FAILED; the loop always moves on to the next command.

Usage:
    executor = CommandExecutor(dispatcher, message_store=store, logger=logger)
    result = await executor.execute_commands(commands, SystemMessageType.DATA_ADDED, session_id="s1")
"""

import time
from typing import Any, Dict, List, Optional, Set, Tuple

from assistant_core.commands.deduplication import collect_fetched_schema_ids
from assistant_core.commands.filtering import filter_action_data, filter_query_data
from assistant_core.commands.titles import DataTitleBuilder, format_result_data
from assistant_core.commands.validation import CommandValidator
from assistant_core.commands.verbalizer import ActionVerbalizer
from assistant_core.config import AssistantSettings, get_settings
from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.protocols import (
    CommandExecutionResult,
    CommandResult,
    CommandStatus,
    DispatcherProtocol,
    ExecutableCommand,
    LoggerProtocol,
    PromptCommandResult,
    SessionMessageStoreProtocol,
    SystemMessage,
    SystemMessageType,
)
from assistant_core.utils.logging import get_component_logger

_BATCH_NOUNS = {
    SystemMessageType.DATA_ADDED: "queries",
    SystemMessageType.ACTIONS_EXECUTED: "actions",
}


def summarize_batch(
    message_type: SystemMessageType,
    success: int,
    failed: int,
    cancelled: int = 0,
    cached: int = 0,
) -> str:
    """One-line outcome: all succeeded, all failed, or partial with counts."""
    noun = _BATCH_NOUNS.get(message_type, "commands")
    total = success + failed + cancelled
    if total == 0:
        return f"No {noun} to execute"

    if failed == 0 and cancelled == 0:
        text = f"All {total} {noun} succeeded"
    elif success == 0 and cancelled == 0:
        text = f"All {total} {noun} failed"
    else:
        text = f"{success} of {total} {noun} succeeded, {failed} failed"
        if cancelled:
            text += f", {cancelled} cancelled"
    if cached:
        text += f" ({cached} already available in conversation)"
    return text


def filter_none_params(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class CommandExecutor:
    """Executes command batches with per-command isolation."""

    def __init__(
        self,
        dispatcher: DispatcherProtocol,
        message_store: Optional[SessionMessageStoreProtocol] = None,
        validator: Optional[CommandValidator] = None,
        verbalizer: Optional[ActionVerbalizer] = None,
        title_builder: Optional[DataTitleBuilder] = None,
        settings: Optional[AssistantSettings] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._dispatcher = dispatcher
        self._message_store = message_store
        self._settings = settings or get_settings()
        self._logger = get_component_logger("CommandExecutor", logger)
        self._validator = validator or CommandValidator()
        self._verbalizer = verbalizer or ActionVerbalizer(dispatcher, logger=logger)
        self._titles = title_builder or DataTitleBuilder(dispatcher, settings=self._settings, logger=logger)

    async def execute_commands(
        self,
        commands: List[ExecutableCommand],
        message_type: SystemMessageType,
        session_id: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> CommandExecutionResult:
        """Execute ``commands`` sequentially and aggregate the outcome.

        Args:
            commands: Commands in execution order
            message_type: Kind of batch recorded on the SystemMessage
            session_id: Enables cross-turn schema deduplication when given
            token: Optional cancellation token checked before each command

        Returns:
            CommandExecutionResult with prompt fragments and the SystemMessage
        """
        start_time = time.perf_counter()
        history_schema_ids = await self._load_history_schema_ids(session_id)
        batch_schema_ids: Set[str] = set()

        prompt_results: List[PromptCommandResult] = []
        command_results: List[CommandResult] = []

        for command in commands:
            result, prompt = await self._execute_one(
                command, history_schema_ids, batch_schema_ids, token
            )
            command_results.append(result)
            if prompt is not None:
                prompt_results.append(prompt)

        success = sum(1 for r in command_results if r.counts_as_success)
        failed = sum(1 for r in command_results if r.status == CommandStatus.FAILED)
        cancelled = sum(1 for r in command_results if r.status == CommandStatus.CANCELLED)
        cached = sum(1 for r in command_results if r.status == CommandStatus.CACHED)

        system_message = SystemMessage(
            type=message_type,
            command_results=command_results,
            summary=summarize_batch(message_type, success, failed, cancelled, cached),
        )

        self._logger.info(
            "command_batch_completed",
            message_type=message_type.value,
            session_id=session_id,
            total=len(commands),
            success=success,
            failed=failed,
            cancelled=cancelled,
            cached=cached,
            execution_time_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return CommandExecutionResult(prompt_results=prompt_results, system_message=system_message)

    async def _load_history_schema_ids(self, session_id: Optional[str]) -> Set[str]:
        if not session_id or self._message_store is None:
            return set()
        try:
            messages = await self._message_store.load_system_messages(session_id)
        except Exception as e:
            self._logger.warning(
                "schema_history_unavailable",
                session_id=session_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return set()
        schema_ids = collect_fetched_schema_ids(messages)
        self._logger.debug("schema_history_loaded", session_id=session_id, schema_ids=sorted(schema_ids))
        return schema_ids

    async def _execute_one(
        self,
        command: ExecutableCommand,
        history_schema_ids: Set[str],
        batch_schema_ids: Set[str],
        token: Optional[CancellationToken],
    ) -> Tuple[CommandResult, Optional[PromptCommandResult]]:
        action = command.action

        if token is not None and token.is_cancelled:
            return self._cancelled(command), None

        schema_id = command.schema_id
        if schema_id and (schema_id in history_schema_ids or schema_id in batch_schema_ids):
            self._logger.debug(
                "schema_fetch_cached",
                schema_id=schema_id,
                source="history" if schema_id in history_schema_ids else "batch",
            )
            return CommandResult(
                command=action,
                status=CommandStatus.CACHED,
                details=f'Schema "{schema_id}" already available in this conversation',
                data={"schema_id": schema_id},
            ), None

        description = action
        try:
            if command.is_action_command:
                description = await self._verbalizer.verbalize(command)

            validation_errors = self._validator.validate(command)
            if validation_errors:
                self._logger.warning(
                    "command_validation_failed",
                    command=action,
                    errors=validation_errors,
                )
                return self._failed(
                    command,
                    description,
                    f"Parameter validation failed: {'; '.join(validation_errors)}",
                ), None

            if token is not None and token.is_cancelled:
                return self._cancelled(command), None

            outcome = await self._dispatcher.dispatch(action, filter_none_params(command.params), token)

            if outcome.cancelled:
                return self._cancelled(command), None
            if not outcome.success:
                self._logger.warning("command_dispatch_failed", command=action, error=outcome.error)
                return self._failed(command, description, outcome.error or "Unknown error"), None

            if command.is_action_command:
                return self._action_success(command, description, outcome.data)

            if schema_id:
                batch_schema_ids.add(schema_id)
            return await self._query_success(command, outcome.data)

        except Exception as e:
            error_type = type(e).__name__
            self._logger.error(
                "command_execution_error",
                command=action,
                error_type=error_type,
                error=str(e),
            )
            return self._failed(command, description, f"{error_type}: {e}"), None

    def _action_success(
        self,
        command: ExecutableCommand,
        description: str,
        data: Optional[Dict[str, Any]],
    ) -> Tuple[CommandResult, PromptCommandResult]:
        filtered = filter_action_data(command, data)
        body = format_result_data(filtered, self._settings.prompt_json_indent) if filtered else ""
        return (
            CommandResult(
                command=command.action,
                status=CommandStatus.SUCCESS,
                details=description,
                data=filtered,
                is_action_command=True,
            ),
            PromptCommandResult(data_title=description, formatted_data=body),
        )

    async def _query_success(
        self,
        command: ExecutableCommand,
        data: Optional[Dict[str, Any]],
    ) -> Tuple[CommandResult, Optional[PromptCommandResult]]:
        title = await self._titles.build(command, data)
        result = CommandResult(
            command=command.action,
            status=CommandStatus.SUCCESS,
            details=title,
            data=filter_query_data(command, data),
        )
        if not data:
            return result, PromptCommandResult(data_title=title, formatted_data="No data returned")
        body = format_result_data(data, self._settings.prompt_json_indent)
        return result, PromptCommandResult(data_title=title, formatted_data=body)

    def _failed(self, command: ExecutableCommand, description: str, error: str) -> CommandResult:
        return CommandResult(
            command=command.action,
            status=CommandStatus.FAILED,
            details=description,
            error=error,
            is_action_command=bool(command.is_action_command),
        )

    def _cancelled(self, command: ExecutableCommand) -> CommandResult:
        self._logger.info("command_cancelled", command=command.action)
        return CommandResult(
            command=command.action,
            status=CommandStatus.CANCELLED,
            details="Cancelled before execution completed",
            is_action_command=bool(command.is_action_command),
        )


__all__ = ["CommandExecutor", "summarize_batch", "filter_none_params"]
