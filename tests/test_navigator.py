"""Curriculum navigation tests."""

import pytest

from tutorlab.classroom import CurriculumNavigator, NavigationStep
from tutorlab.classroom.store import CURRICULUM_POSITION_KEY

from conftest import make_curriculum


def position(nav):
    return nav.module_index, nav.chapter_index, nav.section_index


class TestAdvance:
    """Test reading-order progression."""

    def test_walks_sections_then_chapters(self):
        nav = CurriculumNavigator()
        section = nav.start_curriculum(make_curriculum(chapters=(2, 1)))
        assert section.title == "Course 1.1"

        assert nav.advance_section() == NavigationStep.SECTION
        assert nav.section.title == "Course 1.2"
        assert nav.is_last_section_in_chapter()

        assert nav.advance_section() == NavigationStep.CHAPTER
        assert position(nav) == (0, 1, 0)
        assert nav.is_last_chapter()

    def test_complete_keeps_position(self):
        nav = CurriculumNavigator()
        nav.start_curriculum(make_curriculum(chapters=(1,)))
        assert nav.advance_section() == NavigationStep.COMPLETE
        assert position(nav) == (0, 0, 0)
        assert nav.is_active

    def test_crosses_into_next_module(self):
        nav = CurriculumNavigator()
        nav.start_modules([make_curriculum("A - Part 1", (1,)), make_curriculum("A - Part 2", (1,))])
        assert nav.has_next_module()
        assert nav.advance_section() == NavigationStep.MODULE
        assert position(nav) == (1, 0, 0)
        assert nav.section.title == "A - Part 2 1.1"
        assert not nav.has_next_module()
        assert nav.advance_section() == NavigationStep.COMPLETE

    def test_module_loader_replaces_module(self):
        loaded = []

        def loader(index):
            loaded.append(index)
            return make_curriculum("Fresh", (1,))

        nav = CurriculumNavigator(module_loader=loader)
        nav.start_modules([make_curriculum("Outline 1", (1,)), make_curriculum("Outline 2", (1,))])
        nav.advance_section()
        assert loaded == [1]
        assert nav.curriculum.title == "Fresh"
        assert nav.modules[1].title == "Fresh"

    def test_empty_module_list_rejected(self):
        with pytest.raises(ValueError):
            CurriculumNavigator().start_modules([])


class TestJumps:
    """Test validated repositioning."""

    def test_jump_to_module(self):
        nav = CurriculumNavigator()
        nav.start_modules([make_curriculum("A", (2,)), make_curriculum("B", (1,))])
        nav.advance_section()
        assert nav.jump_to_module(1)
        assert position(nav) == (1, 0, 0)

    def test_invalid_jump_ignored(self):
        nav = CurriculumNavigator()
        nav.start_modules([make_curriculum("A", (2,))])
        nav.advance_section()
        assert not nav.jump_to_module(3)
        assert not nav.jump_to_module(-1)
        assert position(nav) == (0, 0, 1)

    def test_jump_without_modules(self):
        nav = CurriculumNavigator()
        nav.start_curriculum(make_curriculum())
        assert not nav.jump_to_module(0)

    def test_reset_to_section(self):
        nav = CurriculumNavigator()
        nav.start_curriculum(make_curriculum(chapters=(2, 3)))
        assert nav.reset_to_section(1, 2)
        assert nav.section.title == "Course 2.3"
        assert not nav.reset_to_section(0, 2)
        assert not nav.reset_to_section(5, 0)
        assert position(nav) == (0, 1, 2)


class TestPersistence:
    """Test snapshot, resume and abandon."""

    def test_snapshot_roundtrip(self):
        nav = CurriculumNavigator()
        nav.start_modules([make_curriculum("A", (2,)), make_curriculum("B", (1, 2))])
        nav.jump_to_module(1)
        nav.reset_to_section(1, 1)

        other = CurriculumNavigator()
        assert other.restore(nav.snapshot())
        assert position(other) == (1, 1, 1)
        assert other.section.title == nav.section.title

    def test_snapshot_inactive(self):
        assert CurriculumNavigator().snapshot() is None

    def test_resume_from_store(self, store):
        nav = CurriculumNavigator(store)
        nav.start_curriculum(make_curriculum(chapters=(2, 2)))
        nav.advance_section()
        nav.advance_section()

        resumed = CurriculumNavigator(store)
        assert resumed.resume()
        assert position(resumed) == (0, 1, 0)
        assert resumed.modules is None

    def test_resume_nothing_saved(self, store):
        assert not CurriculumNavigator(store).resume()
        assert not CurriculumNavigator().resume()

    def test_resume_discards_corrupt_snapshot(self, store):
        store.set(CURRICULUM_POSITION_KEY, {"section_index": "soon"})
        nav = CurriculumNavigator(store)
        assert not nav.resume()
        assert store.get(CURRICULUM_POSITION_KEY) is None

    def test_resume_discards_out_of_range_snapshot(self, store):
        nav = CurriculumNavigator(store)
        nav.start_curriculum(make_curriculum(chapters=(1,)))
        saved = store.get(CURRICULUM_POSITION_KEY)
        saved["section_index"] = 4
        store.set(CURRICULUM_POSITION_KEY, saved)

        assert not CurriculumNavigator(store).resume()
        assert store.get(CURRICULUM_POSITION_KEY) is None

    def test_abandon(self, store):
        nav = CurriculumNavigator(store)
        nav.start_curriculum(make_curriculum())
        nav.abandon()
        assert not nav.is_active
        assert nav.section is None
        assert store.get(CURRICULUM_POSITION_KEY) is None


class TestDisplay:
    """Test titles and the outline."""

    def test_topic_title_strips_part_suffix(self):
        nav = CurriculumNavigator()
        nav.start_curriculum(make_curriculum("Rust Basics - Part 2: Ownership", (1,)))
        assert nav.topic_title == "Rust Basics"

    def test_progress_outline(self):
        nav = CurriculumNavigator()
        nav.start_curriculum(make_curriculum(chapters=(2, 1)))
        nav.advance_section()
        outline = nav.progress_outline()
        states = [s["state"] for chapter in outline for s in chapter["sections"]]
        assert states == ["done", "current", "upcoming"]
