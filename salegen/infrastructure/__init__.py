"""
Infrastructure package for salegen.

Centralizes filesystem concerns (temp files, staging, atomic publication,
best-effort deletion). Keep this layer focused on I/O and resource
management, decoupled from the pipeline and orchestrator logic.
"""

from salegen.infrastructure.files import (
    create_staging_file,
    create_worker_temp,
    find_worker_temps,
    discard,
    discard_all,
    publish,
    remove_file,
    write_text_atomic,
)

__all__ = [
    "create_staging_file",
    "create_worker_temp",
    "find_worker_temps",
    "discard",
    "discard_all",
    "publish",
    "remove_file",
    "write_text_atomic",
]
