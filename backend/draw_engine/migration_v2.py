"""One-off copy of every legacy jar into the normalized (v2) schema.

The copy is not idempotent: running it twice registers every place twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from common.errors import DecodeError, StorageError
from common.helpers.firebase_helper import FirebaseHelper
from common.logger import custom_logger
from common.models.place import ALL_MEALS, Meal
from draw_engine.jar import Jar
from draw_engine.storage.firebase_v1 import CURRENT_DRAW_PATH
from draw_engine.storage.firebase_v2 import SCHEMA_VERSION, FirebaseStoreV2
from draw_engine.storage.gateway import LABEL_PATH

logger = custom_logger()

MEALS_BY_LEGACY_PATH: Dict[str, Meal] = {meal.legacy_path: meal for meal in ALL_MEALS}


@dataclass
class MigrationReport:
    migrated_jars: List[Jar] = field(default_factory=list)
    migrated_places: int = 0
    skipped_entries: List[str] = field(default_factory=list)
    failed_jars: Dict[Jar, str] = field(default_factory=dict)


def collect_places(jar: Jar, entries: Dict[str, Any]) -> Dict[str, List[Meal]]:
    """Merge the per meal name lists of a legacy jar into name -> meals."""
    places: Dict[str, List[Meal]] = {}
    for path, meal in MEALS_BY_LEGACY_PATH.items():
        names = entries.get(path) or {}
        if not isinstance(names, dict):
            raise DecodeError(f"{path} of {jar} is not an object")
        for name in names.values():
            if not isinstance(name, str):
                continue
            meals = places.setdefault(name, [])
            if meal not in meals:
                meals.append(meal)
    return places


async def migrate_jar(
    jar: Jar, entries: Dict[str, Any], target: FirebaseStoreV2, report: MigrationReport
) -> None:
    logger.info("Migrating jar", extra={"jar": jar})
    for key in entries:
        if key not in MEALS_BY_LEGACY_PATH and key not in (CURRENT_DRAW_PATH, LABEL_PATH):
            logger.warning("Unknown entry", extra={"jar": jar, "entry": key})
            report.skipped_entries.append(f"{jar}/{key}")

    keys_by_name: Dict[str, str] = {}
    for name, meals in collect_places(jar, entries).items():
        place = await target.add_place(jar, name, meals)
        keys_by_name[name] = place.storage_key
        report.migrated_places += 1

    label = entries.get(LABEL_PATH)
    if isinstance(label, str):
        await target.add_label(jar, label)

    pending = entries.get(CURRENT_DRAW_PATH)
    if isinstance(pending, str):
        if pending in keys_by_name:
            await target.update_current_draw(jar, keys_by_name[pending])
        else:
            logger.warning(
                "Pending place is not in any meal list; dropping it",
                extra={"jar": jar, "place": pending},
            )


async def migrate_v2(source: FirebaseHelper, target: FirebaseStoreV2) -> MigrationReport:
    """
    Copy every jar of the legacy root into ``target``.
    :param source (FirebaseHelper): Helper on the legacy (unversioned) root.
    :param target (FirebaseStoreV2): Store writing the normalized schema.
    """
    report = MigrationReport()
    root = await source.get(source.root_url())
    if not root:
        return report
    if not isinstance(root, dict):
        raise DecodeError("Root of the legacy schema is not an object")

    for jar, entries in root.items():
        if jar == SCHEMA_VERSION:
            continue
        if not isinstance(entries, dict):
            logger.warning("Unknown entry", extra={"jar": jar})
            report.skipped_entries.append(jar)
            continue
        try:
            await migrate_jar(jar, entries, target, report)
        except StorageError as error:
            logger.error("Jar migration failed", extra={"jar": jar, "error": str(error)})
            report.failed_jars[jar] = str(error)
            continue
        report.migrated_jars.append(jar)

    return report
