"""Pipeline orchestration: extract, store, sync, render.

Stages run strictly in order. A failure leaves already written records and
documents in place; every step is idempotent, so rerunning the pipeline
converges to the same end state.
"""

import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from claude_export.config import Config
from claude_export.errors import PipelineCancelled, RenderError, StorageIOError
from claude_export.ingest.archive import read_export
from claude_export.logging import get_logger
from claude_export.render.files import build_filename
from claude_export.render.markdown import MarkdownRenderer
from claude_export.store.database import RecordStore
from claude_export.store.queries import mark_as_processed
from claude_export.sync import needs_render, store_users_and_projects, sync_conversations

logger = get_logger("pipeline")

# Global flag for cancellation between stages
_shutdown_requested = False


def request_shutdown() -> None:
    """Ask the running pipeline to stop before its next stage."""
    global _shutdown_requested
    _shutdown_requested = True


def is_shutdown_requested() -> bool:
    """Check if shutdown has been requested."""
    return _shutdown_requested


def reset_shutdown() -> None:
    """Reset shutdown flag (useful for testing)."""
    global _shutdown_requested
    _shutdown_requested = False


class PipelineStage(str, Enum):
    EXTRACT = "extract"
    STORE_USERS_PROJECTS = "store_users_projects"
    SYNC_CONVERSATIONS = "sync_conversations"
    RENDER_DOCUMENTS = "render_documents"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RenderResult:
    """Counters from one rendering pass."""

    generated: int = 0
    skipped: int = 0
    failed: int = 0
    paths: list[Path] = field(default_factory=list)


@dataclass
class PipelineResult:
    """Aggregate counts for a pipeline run."""

    stage: PipelineStage = PipelineStage.EXTRACT
    users: int = 0
    projects: int = 0
    conversations_processed: int = 0
    conversations_skipped: int = 0
    conversations_invalid: int = 0
    documents_generated: int = 0
    documents_skipped: int = 0
    documents_failed: int = 0
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.stage is PipelineStage.DONE


def write_document(output_dir: Path, filename: str, markdown: str) -> Path:
    """Write a rendered document and return its path."""
    output_path = output_dir / filename
    output_path.write_text(markdown, encoding="utf-8")
    return output_path


def render_documents(
    store: RecordStore,
    renderer: MarkdownRenderer,
    output_dir: Path,
    force: bool = False,
) -> RenderResult:
    """Render every stored conversation that lacks an up-to-date document.

    A conversation that fails to render or write is logged and counted; the
    pass continues with the next one. Store write failures are not caught.

    Args:
        store: Opened RecordStore
        renderer: MarkdownRenderer instance
        output_dir: Directory to write documents into
        force: Re-render already rendered conversations

    Returns:
        RenderResult with generated/skipped/failed counts
    """
    result = RenderResult()

    for conversation in store.conversations.find_all():
        uuid = conversation.get("uuid")
        if not needs_render(force, conversation):
            logger.debug("Skipping markdown generation for already processed conversation: uuid=%s", uuid)
            result.skipped += 1
            continue

        try:
            markdown = renderer.render(conversation)
            output_path = write_document(output_dir, build_filename(conversation), markdown)
        except RenderError:
            result.failed += 1
            continue
        except OSError:
            logger.exception("Failed to write markdown for conversation: uuid=%s", uuid)
            result.failed += 1
            continue

        mark_as_processed(store.conversations, uuid, str(output_path))
        result.generated += 1
        result.paths.append(output_path)
        logger.debug("Generated markdown for conversation: uuid=%s path=%s", uuid, output_path)

    logger.info(
        "Generated %d markdown files (skipped %d, failed %d)",
        result.generated,
        result.skipped,
        result.failed,
    )
    return result


class Pipeline:
    """Runs one export archive through extraction, storage and rendering.

    The pipeline owns the RecordStore it opens: it is initialised at the
    start of run() and closed at the end, whatever the outcome.
    """

    def __init__(
        self,
        config: Config,
        archive_path: Path,
        store: RecordStore | None = None,
        renderer: MarkdownRenderer | None = None,
    ) -> None:
        """Prepare a pipeline run.

        Args:
            config: Paths and processing flags
            archive_path: Export zip file to process
            store: Record store (defaults to one at config.paths.database_dir)
            renderer: Document renderer (defaults to MarkdownRenderer())
        """
        self.config = config
        self.archive_path = archive_path
        self.store = store or RecordStore(config.paths.database_dir)
        self.renderer = renderer or MarkdownRenderer()
        self.result = PipelineResult()

    @property
    def stage(self) -> PipelineStage:
        return self.result.stage

    def _enter(self, stage: PipelineStage) -> None:
        if is_shutdown_requested():
            raise PipelineCancelled(f"Cancelled before stage {stage.value}")
        logger.debug("Entering stage: stage=%s", stage.value)
        self.result.stage = stage

    def run(self) -> PipelineResult:
        """Run every stage in order.

        Returns:
            PipelineResult in the DONE stage

        Raises:
            ExportError: Fatal errors, after the result moves to FAILED
        """
        reset_shutdown()
        output_dir = self.config.paths.output_dir
        force = self.config.processing.force

        logger.info(
            "Starting process: archive=%s output=%s database=%s mode=%s",
            self.archive_path,
            output_dir,
            self.store.database_dir,
            "incremental" if self.config.processing.incremental else "full",
        )

        try:
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageIOError(f"Cannot create output directory {output_dir}: {e}") from e

            with tempfile.TemporaryDirectory(prefix="claude-export-") as scratch:
                self._enter(PipelineStage.EXTRACT)
                export = read_export(
                    self.archive_path,
                    Path(scratch),
                    progress_every=self.config.processing.progress_every,
                )

                self._enter(PipelineStage.STORE_USERS_PROJECTS)
                self.store.init()
                self.result.users, self.result.projects = store_users_and_projects(
                    self.store, export.users, export.projects
                )

                self._enter(PipelineStage.SYNC_CONVERSATIONS)
                sync_result = sync_conversations(self.store, export.iter_conversations(), force=force)
                self.result.conversations_processed = sync_result.processed
                self.result.conversations_skipped = sync_result.skipped
                self.result.conversations_invalid = sync_result.invalid

            self._enter(PipelineStage.RENDER_DOCUMENTS)
            render_result = render_documents(self.store, self.renderer, output_dir, force=force)
            self.result.documents_generated = render_result.generated
            self.result.documents_skipped = render_result.skipped
            self.result.documents_failed = render_result.failed

            self.store.update_meta()
            self.result.stage = PipelineStage.DONE
            logger.info("Process completed")
            return self.result
        except Exception as e:
            failed_stage = self.result.stage
            self.result.stage = PipelineStage.FAILED
            self.result.error = e
            logger.error("Process failed: stage=%s error=%s", failed_stage.value, e)
            raise
        finally:
            self.store.close()
