"""Mapping between LINE conversations and storage partition keys ("jars")."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from common.logger import custom_logger
from common.models.conversation import ChannelKind, Conversation
from common.errors import JarDecodeError

logger = custom_logger()

Jar = str


def to_jar(conversation: Conversation) -> Jar:
    """Derive the storage key of a conversation, without alias overrides."""
    return f"{conversation.kind.value}_{conversation.id}"


def to_conversation(jar: Jar) -> Conversation:
    """Parse a storage key back into the conversation kind and id."""
    prefix, separator, identifier = jar.partition("_")
    if not separator:
        raise JarDecodeError(f"Jar {jar!r} has no kind prefix")
    try:
        kind = ChannelKind(prefix)
    except ValueError as error:
        raise JarDecodeError(f"Jar {jar!r} has an unknown kind {prefix!r}") from error
    return Conversation(kind=kind, id=identifier)


def load_aliases(
    raw_value: Optional[str] = None, file_path: Optional[str] = None
) -> Dict[Jar, Jar]:
    """Load the alias table from a JSON string or file.

    Any problem reading or parsing the source yields an empty table.
    """
    source = raw_value
    if not source and file_path:
        try:
            source = Path(file_path).read_text(encoding="utf-8")
        except OSError as error:
            logger.warning(
                "Unable to read jar aliases file",
                extra={"file_path": file_path, "error": str(error)},
            )
            return {}

    if not source:
        return {}

    try:
        aliases = json.loads(source)
    except json.JSONDecodeError as error:
        logger.warning("Jar aliases are not valid JSON", extra={"error": str(error)})
        return {}

    if not isinstance(aliases, dict):
        logger.warning("Jar aliases must be a JSON object; ignoring them")
        return {}

    return {str(k): str(v) for k, v in aliases.items() if isinstance(v, str)}


def load_aliases_from_env() -> Dict[Jar, Jar]:
    return load_aliases(
        os.environ.get("JAR_ALIASES"), os.environ.get("JAR_ALIASES_FILE")
    )


class JarResolver:
    """Resolves conversations to jars through a read-only alias table."""

    def __init__(self, aliases: Optional[Mapping[Jar, Jar]] = None) -> None:
        self._aliases: Dict[Jar, Jar] = dict(aliases or {})

    def resolve(self, conversation: Conversation) -> Jar:
        jar = to_jar(conversation)
        return self._aliases.get(jar, jar)
