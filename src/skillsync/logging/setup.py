"""
Configuración del sistema de logging estructurado.

Tres pipelines independientes:
1. Archivo (JSON): si config.file está configurado. Captura todo (DEBUG+).
2. Human handler (stderr): solo eventos HUMAN, lo que hizo el sync.
3. Console técnico (stderr): controlado por -v. Excluye HUMAN.

Comportamiento por defecto (sin -v): el usuario ve las líneas HUMAN más
warnings y errores. Con -v añade INFO, con -vv añade DEBUG. --quiet silencia
el pipeline humano pero deja pasar warnings y errores, así un hook de shell
que ejecuta ``skill-sync run --quiet`` no imprime nada salvo si algo falla.
"""

import logging
import sys
from pathlib import Path

import structlog

from ..config.schema import LoggingConfig
from .human import HumanLogHandler
from .levels import HUMAN

_LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "human": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(config: LoggingConfig, quiet: bool = False) -> None:
    """Configura el sistema completo de logging con tres pipelines.

    Args:
        config: Configuración de logging (level, file, verbose).
        quiet: Desactiva el pipeline humano (--quiet).
    """
    logging.root.handlers.clear()
    structlog.reset_defaults()

    # El root logger deja pasar todo; cada handler filtra por nivel
    logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[])

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    # ── Pipeline 1: Archivo JSON ──────────────────────────────────────────
    if config.file:
        file_path = Path(config.file).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(file_path), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(file_handler)

    # ── Pipeline 2: Human handler ─────────────────────────────────────────
    if not quiet:
        human_handler = HumanLogHandler()
        human_handler.setLevel(HUMAN)
        human_handler.addFilter(lambda record: record.levelno == HUMAN)
        logging.root.addHandler(human_handler)

    # ── Pipeline 3: Console técnico ───────────────────────────────────────
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level(config))
    # Los eventos HUMAN ya los procesa el human handler
    console_handler.addFilter(lambda record: record.levelno != HUMAN)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            foreign_pre_chain=shared_processors,
        )
    )
    logging.root.addHandler(console_handler)

    structlog.configure(
        processors=shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _console_level(config: LoggingConfig) -> int:
    """Nivel del console handler técnico.

    Un -v explícito tiene prioridad; si no, se usa el nivel configurado.

    Sin -v -> nivel de la config (WARNING para el "human" por defecto)
    -v     -> INFO
    -vv+   -> DEBUG
    """
    if config.verbose <= 0:
        return _LEVEL_NAMES.get(config.level, logging.WARNING)
    if config.verbose == 1:
        return logging.INFO
    return logging.DEBUG
