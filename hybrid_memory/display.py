"""
Rich terminal output for hybrid memory.

Renders search results, checkpoint listings and statistics with the Rich
library:
- Consistent symbol vocabulary (no emoji)
- Per-signal score columns next to the fused score
- NO_COLOR and verbosity taken from the environment
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .checkpoint import CheckpointMetadata, CheckpointStats
from .types import MemoryStats, SearchResult

# ============================================================================
# Visual Language
# ============================================================================


class Symbol(str, Enum):
    """Semantic symbols for memory output."""

    MEMORY = "∿"  # Memory operation
    SEARCH = "⊕"  # Search results
    CHECKPOINT = "◆"  # Checkpoint
    SUCCESS = "✓"
    WARNING = "⚠"


class Color(str, Enum):
    MEMORY = "cyan"
    SEARCH = "blue"
    CHECKPOINT = "magenta"
    SUCCESS = "green"
    WARNING = "yellow"
    DIM = "dim"


# ============================================================================
# Configuration
# ============================================================================


@dataclass
class OutputConfig:
    """Configuration for Rich output."""

    verbosity: Literal["quiet", "normal", "verbose"] = "normal"
    colors: bool = True
    preview_chars: int = 60
    panel_width: int | None = None  # Auto-detect if None

    @classmethod
    def from_env(cls) -> OutputConfig:
        """Load configuration from environment variables (NO_COLOR wins)."""
        no_color = os.environ.get("NO_COLOR") is not None

        verbosity = os.environ.get("HYBRID_MEMORY_VERBOSITY", "normal")
        if verbosity not in ("quiet", "normal", "verbose"):
            verbosity = "normal"

        colors_env = os.environ.get("HYBRID_MEMORY_COLORS", "").lower()
        colors = not no_color and colors_env != "false"

        return cls(
            verbosity=verbosity,  # type: ignore[arg-type]
            colors=colors,
        )


# ============================================================================
# Formatting helpers
# ============================================================================


def format_bytes(size: int) -> str:
    """Format a byte count with B/KB/MB/GB suffix."""
    if size >= 1024**3:
        return f"{size / 1024**3:.1f} GB"
    elif size >= 1024**2:
        return f"{size / 1024**2:.1f} MB"
    elif size >= 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size} B"


def format_timestamp(timestamp: float | None) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def _preview(content: str, limit: int) -> str:
    content = " ".join(content.split())
    return content[:limit] + "..." if len(content) > limit else content


def build_results_table(
    results: Sequence[SearchResult],
    preview_chars: int = 60,
    show_signals: bool = True,
) -> Table:
    """
    Build a table of ranked search results.

    Example output:
        #  Score   BM25  Vector  Recency  Imp.  Layer    Content
        1  0.0656  1.93  0.81    0.99     0.90  semantic "hash passwords..."
    """
    table = Table(
        title=f"{Symbol.SEARCH.value} Search results ({len(results)})",
        title_style=f"bold {Color.SEARCH.value}",
        header_style="bold",
    )
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    if show_signals:
        table.add_column("BM25", justify="right")
        table.add_column("Vector", justify="right")
        table.add_column("Recency", justify="right")
        table.add_column("Imp.", justify="right")
    table.add_column("Layer", style=Color.DIM.value)
    table.add_column("Content")

    for result in results:
        scores = result.scores
        layer = result.entry.metadata.layer
        row = [str(result.rank), f"{scores.combined:.4f}"]
        if show_signals:
            row += [
                f"{scores.bm25:.2f}",
                f"{scores.vector:.2f}",
                f"{scores.recency:.2f}",
                f"{scores.importance:.2f}",
            ]
        row += [
            layer.value if layer is not None else "-",
            _preview(result.entry.content, preview_chars),
        ]
        table.add_row(*row)

    return table


def build_checkpoints_table(checkpoints: Sequence[CheckpointMetadata]) -> Table:
    """Build a table of checkpoints, in the order given (newest first from listing)."""
    table = Table(
        title=f"{Symbol.CHECKPOINT.value} Checkpoints ({len(checkpoints)})",
        title_style=f"bold {Color.CHECKPOINT.value}",
        header_style="bold",
    )
    table.add_column("ID", no_wrap=True)
    table.add_column("Created")
    table.add_column("Entries", justify="right")
    table.add_column("Branch", style=Color.DIM.value)
    table.add_column("Description")

    for checkpoint in checkpoints:
        table.add_row(
            checkpoint.id,
            format_timestamp(checkpoint.timestamp),
            str(checkpoint.entry_count),
            checkpoint.git_branch or "-",
            checkpoint.description,
        )

    return table


def build_stats_panel(
    memory_stats: MemoryStats,
    checkpoint_stats: CheckpointStats | None = None,
) -> Panel:
    """Build a panel summarizing store statistics and, optionally, checkpoints."""
    text = Text()
    text.append(f"{Symbol.MEMORY.value} ", style=f"bold {Color.MEMORY.value}")
    text.append("Memory\n", style="bold")
    text.append(f"  Entries:         {memory_stats.entry_count}\n")
    text.append(f"  Avg doc length:  {memory_stats.avg_doc_length:.1f} tokens\n")
    text.append(f"  Vocabulary:      {memory_stats.vocabulary_size} terms")

    if checkpoint_stats is not None:
        text.append(f"\n\n{Symbol.CHECKPOINT.value} ", style=f"bold {Color.CHECKPOINT.value}")
        text.append("Checkpoints\n", style="bold")
        text.append(f"  Count:           {checkpoint_stats.total_checkpoints}\n")
        text.append(f"  Total size:      {format_bytes(checkpoint_stats.total_size)}\n")
        text.append(f"  Oldest:          {format_timestamp(checkpoint_stats.oldest)}\n")
        text.append(f"  Newest:          {format_timestamp(checkpoint_stats.newest)}")

    return Panel(text, title="Hybrid memory", border_style=Color.MEMORY.value, padding=(0, 1))


# ============================================================================
# Console
# ============================================================================


class MemoryConsole:
    """Rich-formatted console output for memory operations."""

    def __init__(self, config: OutputConfig | None = None):
        self.config = config or OutputConfig.from_env()
        self.console = Console(
            force_terminal=True,
            no_color=not self.config.colors,
            width=self.config.panel_width,
        )

    def _should_emit(self, level: str) -> bool:
        levels = ["quiet", "normal", "verbose"]
        event_level = levels.index(level) if level in levels else 1
        return event_level <= levels.index(self.config.verbosity)

    def print_results(self, results: Sequence[SearchResult]) -> None:
        """Print search results; per-signal columns only when verbose."""
        if not self._should_emit("normal"):
            return

        if not results:
            text = Text()
            text.append(f"{Symbol.WARNING.value} ", style=Color.WARNING.value)
            text.append("No results", style=Color.DIM.value)
            self.console.print(text)
            return

        self.console.print(
            build_results_table(
                results,
                preview_chars=self.config.preview_chars,
                show_signals=self._should_emit("verbose"),
            )
        )

    def print_checkpoints(self, checkpoints: Sequence[CheckpointMetadata]) -> None:
        if not self._should_emit("normal"):
            return
        self.console.print(build_checkpoints_table(checkpoints))

    def print_stats(
        self,
        memory_stats: MemoryStats,
        checkpoint_stats: CheckpointStats | None = None,
    ) -> None:
        if not self._should_emit("normal"):
            return
        self.console.print(build_stats_panel(memory_stats, checkpoint_stats))


__all__ = [
    "Color",
    "MemoryConsole",
    "OutputConfig",
    "Symbol",
    "build_checkpoints_table",
    "build_results_table",
    "build_stats_panel",
    "format_bytes",
    "format_timestamp",
]
