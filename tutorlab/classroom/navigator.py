"""
CurriculumNavigator - Chapter/section/module progression with a saved position.

The navigator holds either a single curriculum or a module list (a
multi-part learning path built from one article), plus the current
module/chapter/section indices. Every change of position is saved to the
store so the app can resume exactly where the learner left off.
"""

import logging
import re
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from tutorlab.schemas import Curriculum, NavigatorSnapshot, Section

from .store import CURRICULUM_POSITION_KEY, KeyValueStore

logger = logging.getLogger(__name__)

PART_SUFFIX_PATTERN = re.compile(r" - Part \d+.*$")


class NavigationStep(str, Enum):
    """Outcome of advance_section()."""
    SECTION = "section"
    CHAPTER = "chapter"
    MODULE = "module"
    COMPLETE = "complete"


class CurriculumNavigator:
    """
    Track the learner's position in a curriculum or module list.

    Args:
        store: Optional store for the saved position
        module_loader: Called with a module index when progression crosses
            into that module; returns the curriculum to play. Defaults to
            the module already held in the list.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        module_loader: Optional[Callable[[int], Curriculum]] = None,
    ):
        self.store = store
        self.module_loader = module_loader
        self.modules: Optional[list[Curriculum]] = None
        self.curriculum: Optional[Curriculum] = None
        self.module_index = 0
        self.chapter_index = 0
        self.section_index = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.curriculum is not None

    @property
    def section(self) -> Optional[Section]:
        """The materialized current section."""
        if self.curriculum is None:
            return None
        return self.curriculum.chapters[self.chapter_index].sections[self.section_index]

    def start_curriculum(self, curriculum: Curriculum) -> Section:
        self.modules = None
        self.curriculum = curriculum
        self._move(0, 0, 0)
        logger.info(f"Started curriculum '{curriculum.title}'")
        return self.section

    def start_modules(self, modules: list[Curriculum]) -> Section:
        if not modules:
            raise ValueError("Module list must not be empty")
        self.modules = list(modules)
        self.curriculum = self.modules[0]
        self._move(0, 0, 0)
        logger.info(f"Started {len(modules)}-module path '{self.curriculum.title}'")
        return self.section

    def _move(self, module_index: int, chapter_index: int, section_index: int):
        self.module_index = module_index
        self.chapter_index = chapter_index
        self.section_index = section_index
        self._save()

    # -------------------------------------------------------------------------
    # Progression
    # -------------------------------------------------------------------------

    def is_last_section_in_chapter(self) -> bool:
        if self.curriculum is None:
            return False
        chapter = self.curriculum.chapters[self.chapter_index]
        return self.section_index == len(chapter.sections) - 1

    def is_last_chapter(self) -> bool:
        if self.curriculum is None:
            return False
        return self.chapter_index == len(self.curriculum.chapters) - 1

    def has_next_module(self) -> bool:
        return self.modules is not None and self.module_index < len(self.modules) - 1

    def advance_section(self) -> NavigationStep:
        """
        Move to the next section in reading order.

        Returns:
            SECTION or CHAPTER for moves within the curriculum, MODULE when
            the next module was entered, COMPLETE at the very end (the
            position is left on the last section)
        """
        if self.curriculum is None:
            raise RuntimeError("No curriculum in progress")

        if not self.is_last_section_in_chapter():
            self._move(self.module_index, self.chapter_index, self.section_index + 1)
            return NavigationStep.SECTION

        if not self.is_last_chapter():
            self._move(self.module_index, self.chapter_index + 1, 0)
            return NavigationStep.CHAPTER

        if self.has_next_module():
            next_index = self.module_index + 1
            if self.module_loader is not None:
                self.modules[next_index] = self.module_loader(next_index)
            self.curriculum = self.modules[next_index]
            self._move(next_index, 0, 0)
            logger.info(f"Entered module {next_index + 1} of {len(self.modules)}")
            return NavigationStep.MODULE

        logger.info(f"Completed '{self.curriculum.title}'")
        return NavigationStep.COMPLETE

    def jump_to_module(self, index: int) -> bool:
        """Switch to the first section of module `index`; False if it does not exist."""
        if self.modules is None or not 0 <= index < len(self.modules):
            logger.warning(f"Ignoring jump to unknown module {index}")
            return False
        self.curriculum = self.modules[index]
        self._move(index, 0, 0)
        return True

    def reset_to_section(self, chapter_index: int, section_index: int) -> bool:
        """Move within the current curriculum; False for indices that do not exist."""
        if self.curriculum is None or not _has_section(self.curriculum, chapter_index, section_index):
            logger.warning(f"Ignoring reset to missing section {chapter_index}/{section_index}")
            return False
        self._move(self.module_index, chapter_index, section_index)
        return True

    # -------------------------------------------------------------------------
    # Snapshot / persistence
    # -------------------------------------------------------------------------

    def snapshot(self) -> Optional[NavigatorSnapshot]:
        if self.curriculum is None:
            return None
        return NavigatorSnapshot(
            modules=self.modules,
            curriculum=None if self.modules is not None else self.curriculum,
            module_index=self.module_index,
            chapter_index=self.chapter_index,
            section_index=self.section_index,
        )

    def restore(self, snapshot: NavigatorSnapshot) -> bool:
        """Apply a saved position; a snapshot whose indices don't resolve is rejected."""
        if snapshot.modules:
            if snapshot.module_index >= len(snapshot.modules):
                logger.warning(f"Rejecting snapshot with module index {snapshot.module_index}")
                return False
            curriculum = snapshot.modules[snapshot.module_index]
        elif snapshot.curriculum is not None:
            if snapshot.module_index != 0:
                logger.warning("Rejecting single-curriculum snapshot with a module index")
                return False
            curriculum = snapshot.curriculum
        else:
            logger.warning("Rejecting empty snapshot")
            return False

        if not _has_section(curriculum, snapshot.chapter_index, snapshot.section_index):
            logger.warning(
                f"Rejecting snapshot at missing section "
                f"{snapshot.chapter_index}/{snapshot.section_index}"
            )
            return False

        self.modules = list(snapshot.modules) if snapshot.modules else None
        self.curriculum = curriculum
        self._move(snapshot.module_index, snapshot.chapter_index, snapshot.section_index)
        return True

    def resume(self) -> bool:
        """Reload the saved position at startup; corrupt snapshots are discarded."""
        if self.store is None:
            return False
        raw = self.store.get(CURRICULUM_POSITION_KEY)
        if raw is None:
            return False
        try:
            snapshot = NavigatorSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid curriculum position: {e}")
            self.store.delete(CURRICULUM_POSITION_KEY)
            return False
        if not self.restore(snapshot):
            self.store.delete(CURRICULUM_POSITION_KEY)
            return False
        logger.info(f"Resumed '{self.curriculum.title}' at {self.chapter_index}/{self.section_index}")
        return True

    def abandon(self):
        """Leave curriculum mode and forget the saved position."""
        self.modules = None
        self.curriculum = None
        self.module_index = 0
        self.chapter_index = 0
        self.section_index = 0
        if self.store is not None:
            self.store.delete(CURRICULUM_POSITION_KEY)

    def _save(self):
        if self.store is None:
            return
        snapshot = self.snapshot()
        if snapshot is not None:
            self.store.set(CURRICULUM_POSITION_KEY, snapshot.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Display helpers
    # -------------------------------------------------------------------------

    @property
    def topic_title(self) -> Optional[str]:
        """Current curriculum title without its ' - Part N' suffix."""
        if self.curriculum is None:
            return None
        return PART_SUFFIX_PATTERN.sub("", self.curriculum.title)

    def progress_outline(self) -> list[dict]:
        """
        Chapter/section outline for the progress panel.

        Returns:
            List of {"title", "sections": [{"title", "state"}]} where state is
            done, current or upcoming
        """
        if self.curriculum is None:
            return []
        outline = []
        for c_idx, chapter in enumerate(self.curriculum.chapters):
            sections = []
            for s_idx, section in enumerate(chapter.sections):
                position = (c_idx, s_idx)
                current = (self.chapter_index, self.section_index)
                if position < current:
                    state = "done"
                elif position == current:
                    state = "current"
                else:
                    state = "upcoming"
                sections.append({"title": section.title, "state": state})
            outline.append({"title": chapter.title, "sections": sections})
        return outline


def _has_section(curriculum: Curriculum, chapter_index: int, section_index: int) -> bool:
    if not 0 <= chapter_index < len(curriculum.chapters):
        return False
    return 0 <= section_index < len(curriculum.chapters[chapter_index].sections)
