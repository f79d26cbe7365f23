"""End-to-end turn processing.

enrichments -> DataCommands -> ExecutableCommands -> CommandExecutor ->
SystemMessage appended to session history.

Usage:
    pipeline = EnrichmentPipeline.create(coordinator, message_store)
    result = await pipeline.execute_enrichments("s1", [EnrichmentBlock(EnrichmentType.USE, '{"toolInstanceId": "T1"}')])
    prompt_text = build_prompt_block(result.prompt_results)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from assistant_core.commands.deduplication import deduplicate_commands
from assistant_core.commands.executor import CommandExecutor, summarize_batch
from assistant_core.commands.transformer import CommandTransformer
from assistant_core.config import AssistantSettings, get_settings
from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.enrichments.models import EnrichmentType, parse_enrichment
from assistant_core.enrichments.processor import INVALID_ENRICHMENT_LABEL, EnrichmentProcessor
from assistant_core.enrichments.temporal import TemporalResolver
from assistant_core.errors import (
    CommandTransformError,
    EnrichmentConfigError,
    SchemaResolutionError,
    TemporalSelectionError,
)
from assistant_core.protocols import (
    ClockProtocol,
    CommandExecutionResult,
    CommandResult,
    CommandStatus,
    DataCommand,
    DispatcherProtocol,
    ExecutableCommand,
    LoggerProtocol,
    PromptCommandResult,
    SessionMessageStoreProtocol,
    SystemMessageType,
)
from assistant_core.utils.clock import SystemClock
from assistant_core.utils.logging import get_component_logger, session_scope
from assistant_core.utils.periods import PeriodCalculator


@dataclass(frozen=True)
class EnrichmentBlock:
    """Enrichment as attached to a message: discriminant plus raw config."""
    type: EnrichmentType
    config: Union[str, Dict[str, Any]]


def build_prompt_block(prompt_results: Sequence[PromptCommandResult]) -> str:
    """``# title`` + body sections separated by a blank line."""
    return "\n\n".join(r.render() for r in prompt_results)


class EnrichmentPipeline:
    """Runs enrichment and action batches for one session turn."""

    def __init__(
        self,
        processor: EnrichmentProcessor,
        transformer: CommandTransformer,
        executor: CommandExecutor,
        message_store: Optional[SessionMessageStoreProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._processor = processor
        self._transformer = transformer
        self._executor = executor
        self._message_store = message_store
        self._logger = get_component_logger("EnrichmentPipeline", logger)

    @classmethod
    def create(
        cls,
        dispatcher: DispatcherProtocol,
        message_store: Optional[SessionMessageStoreProtocol] = None,
        settings: Optional[AssistantSettings] = None,
        clock: Optional[ClockProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> "EnrichmentPipeline":
        """Wire the default components around one dispatcher."""
        settings = settings or get_settings()
        clock = clock or SystemClock()
        periods = PeriodCalculator.from_settings(settings)
        return cls(
            processor=EnrichmentProcessor(
                dispatcher,
                temporal=TemporalResolver(periods, clock),
                logger=logger,
            ),
            transformer=CommandTransformer(settings, periods=periods, clock=clock, logger=logger),
            executor=CommandExecutor(dispatcher, message_store=message_store, settings=settings, logger=logger),
            message_store=message_store,
            logger=logger,
        )

    async def execute_enrichments(
        self,
        session_id: str,
        enrichments: Sequence[EnrichmentBlock],
        is_relative: bool = False,
        token: Optional[CancellationToken] = None,
    ) -> CommandExecutionResult:
        """Resolve and execute the enrichments of one turn.

        The SystemMessage is persisted only when the batch produced at
        least one command result.
        """
        with session_scope(session_id, self._logger) as logger:
            failures: List[CommandResult] = []
            data_commands: List[DataCommand] = []

            for block in enrichments:
                try:
                    enrichment = parse_enrichment(block.type, block.config)
                except EnrichmentConfigError as e:
                    logger.warning("enrichment_config_invalid", enrichment_type=e.enrichment_type, error=str(e))
                    failures.append(self._enrichment_failure(e.enrichment_type, INVALID_ENRICHMENT_LABEL, e))
                    continue

                if not self._processor.should_generate_query(block.type, enrichment):
                    continue
                try:
                    data_commands.extend(
                        await self._processor.generate_commands(block.type, enrichment, is_relative)
                    )
                except SchemaResolutionError as e:
                    logger.warning(
                        "enrichment_resolution_failed",
                        enrichment_type=EnrichmentType(block.type).value,
                        error=str(e),
                    )
                    failures.append(self._enrichment_failure(
                        EnrichmentType(block.type).value,
                        self._processor.generate_summary(block.type, enrichment),
                        e,
                    ))

            executable = self._transform(deduplicate_commands(data_commands), failures, logger)
            result = await self._executor.execute_commands(
                executable, SystemMessageType.DATA_ADDED, session_id=session_id, token=token
            )
            result = self._merge_failures(result, failures)

            if result.system_message.command_results:
                await self._persist(session_id, result)
            return result

    async def execute_actions(
        self,
        session_id: str,
        commands: Sequence[DataCommand],
        token: Optional[CancellationToken] = None,
    ) -> CommandExecutionResult:
        """Execute AI-issued actions. The SystemMessage is always persisted."""
        with session_scope(session_id, self._logger) as logger:
            failures: List[CommandResult] = []
            executable = self._transform(list(commands), failures, logger)
            result = await self._executor.execute_commands(
                executable, SystemMessageType.ACTIONS_EXECUTED, session_id=session_id, token=token
            )
            result = self._merge_failures(result, failures)
            await self._persist(session_id, result)
            return result

    @staticmethod
    def _enrichment_failure(enrichment_type: str, details: str, error: Exception) -> CommandResult:
        return CommandResult(
            command=f"enrichment.{enrichment_type.lower()}",
            status=CommandStatus.FAILED,
            details=details,
            error=str(error),
        )

    def _transform(
        self,
        commands: List[DataCommand],
        failures: List[CommandResult],
        logger: LoggerProtocol,
    ) -> List[ExecutableCommand]:
        executable: List[ExecutableCommand] = []
        for command in commands:
            try:
                executable.append(self._transformer.transform_one(command))
            except (CommandTransformError, TemporalSelectionError) as e:
                logger.warning("command_transform_failed", command_id=command.id, error=str(e))
                failures.append(CommandResult(
                    command=command.type.value,
                    status=CommandStatus.FAILED,
                    details=command.id,
                    error=str(e),
                ))
        return executable

    def _merge_failures(
        self,
        result: CommandExecutionResult,
        failures: List[CommandResult],
    ) -> CommandExecutionResult:
        if not failures:
            return result
        message = result.system_message
        message.command_results = failures + message.command_results
        message.summary = summarize_batch(
            message.type,
            result.success_count,
            result.failed_count,
            result.cancelled_count,
            sum(1 for r in message.command_results if r.status == CommandStatus.CACHED),
        )
        return result

    async def _persist(self, session_id: str, result: CommandExecutionResult) -> None:
        message = result.system_message
        if result.prompt_results:
            message.formatted_data = build_prompt_block(result.prompt_results)
        if self._message_store is None:
            return
        await self._message_store.append_system_message(session_id, message)


__all__ = ["EnrichmentPipeline", "EnrichmentBlock", "build_prompt_block"]
