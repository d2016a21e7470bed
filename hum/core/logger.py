"""
Structured logging for hum.
Uses structlog for contextual logs and rich for console status lines.
"""

import structlog
from rich.console import Console
from rich.markup import escape
from rich.theme import Theme
from typing import Any, MutableMapping, Optional

from .security import SecretsMasker

# Status line styles
hum_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "step": "bold magenta",
    "detail": "dim",
})

console = Console(theme=hum_theme)


def mask_event_secrets(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """structlog processor: tokens and key=value secrets never reach the log stream."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = SecretsMasker.mask_secrets(value)
    return event_dict


def setup_logging(verbose: bool = False) -> None:
    """Configure structured logging.

    Without --verbose only warnings and errors reach the log stream; the
    rich console lines carry the normal progress output.
    """
    renderer = structlog.dev.ConsoleRenderer(colors=True) if verbose else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            mask_event_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if verbose else 30),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)


class HumLogger:
    """High-level logger printing themed status lines and mirroring them to structlog."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def step(self, message: str, step_num: Optional[int] = None) -> None:
        """Log a step in the pipeline."""
        prefix = f"[Step {step_num}]" if step_num else "[→]"
        console.print(f"[step]{prefix}[/step] {escape(message)}")
        self.logger.info(message, step=step_num)

    def success(self, message: str) -> None:
        console.print(f"[success]✓[/success] {escape(message)}")
        self.logger.info(message, status="success")

    def warning(self, message: str) -> None:
        console.print(f"[warning]⚠[/warning] {escape(message)}")
        self.logger.warning(message)

    def error(self, message: str, exc: Optional[Exception] = None) -> None:
        console.print(f"[error]✗[/error] {escape(message)}")
        self.logger.error(message, exc_info=exc)

    def info(self, message: str, **kwargs: Any) -> None:
        console.print(f"[info]ℹ[/info] {escape(message)}")
        self.logger.info(message, **kwargs)

    def detail(self, message: str) -> None:
        """Print an indented diagnostic line (no structlog event)."""
        console.print(f"  {message}", style="detail", markup=False, highlight=False)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, **kwargs)
