#!/usr/bin/env python3
"""
tutorlab - Terminal tutor.

Numbered menu over the same lesson engine the Streamlit app uses:
  [1] New lesson       [2] Learning queue   [3] History
  [4] Brain map        [5] Report scan      [6] Exit

Usage:
  tutorlab                              # Interactive menu
  tutorlab --file notes.md              # Build a curriculum from a local file
  tutorlab --resume                     # Continue the saved curriculum
  tutorlab --data-dir /tmp/tutor --log-level DEBUG
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from tutorlab.classroom import (
    AnswerStatus,
    CurriculumNavigator,
    HistoryLog,
    KeyValueStore,
    KnowledgeTracker,
    LearningQueue,
    LessonPhase,
    LessonResult,
    LessonSession,
    NavigationStep,
)
from tutorlab.config import Settings
from tutorlab.generation import GeminiClient, GenerationError, SourceFileError, TutorService
from tutorlab.schemas import (
    CurriculumHistoryItem,
    Difficulty,
    Question,
    QuestionType,
    Section,
    TeachingPrompt,
)
from tutorlab.utils import strip_highlights
from tutorlab.viewer import format_brain_map

logger = logging.getLogger(__name__)

DIFFICULTY_CHOICES = list(Difficulty)
DEFAULT_DIFFICULTY = Difficulty.HIGH_SCHOOL
RULE = "─" * 40


class TutorCLI:
    """
    Menu loop and lesson player for the terminal.

    Args:
        service: TutorService, or None when no API key is configured
        store: Shared key-value store
        reports_dir: Directory scanned by the report option
        input_fn: Line reader (input() by default)
        print_fn: Line writer (print() by default)
    """

    def __init__(
        self,
        service: Optional[TutorService],
        store: KeyValueStore,
        reports_dir: Path,
        input_fn: Callable[[str], str] = input,
        print_fn: Callable[..., None] = print,
    ):
        self.service = service
        self.store = store
        self.reports_dir = Path(reports_dir)
        self.knowledge = KnowledgeTracker(store)
        self.history = HistoryLog(store)
        self.queue = LearningQueue(store)
        self.navigator = CurriculumNavigator(store)
        self._input = input_fn
        self._print = print_fn

    def ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def say(self, text: str = ""):
        self._print(text)

    # -------------------------------------------------------------------------
    # Menu
    # -------------------------------------------------------------------------

    def run(self) -> int:
        actions = {
            "1": self.new_lesson,
            "2": self.show_queue,
            "3": self.show_history,
            "4": self.show_brain_map,
            "5": self.report_scan,
        }
        try:
            while True:
                self.say()
                self.say("💡 TutorLab | Select Operation:")
                self.say(RULE)
                self.say(" [1] 📚 Start New Lesson")
                self.say(" [2] ⏳ Learning Queue")
                self.say(" [3] 📜 Lesson History")
                self.say(" [4] 🧠 Brain Map")
                self.say(" [5] 🌐 Report Scan")
                self.say(" [6] ❌ Exit")
                self.say(RULE)

                choice = self.ask("Enter number > ")
                if choice == "6":
                    break
                action = actions.get(choice)
                if action is None:
                    self.say("Please enter a number from 1 to 6.")
                    continue
                action()
        except EOFError:
            pass
        self.say("Goodbye.")
        return 0

    def _require_service(self) -> bool:
        if self.service is None:
            self.say("❌ GEMINI_API_KEY not set. Check your .env file.")
            return False
        return True

    def choose_difficulty(self) -> Difficulty:
        for index, difficulty in enumerate(DIFFICULTY_CHOICES, start=1):
            marker = " (default)" if difficulty == DEFAULT_DIFFICULTY else ""
            self.say(f"  [{index}] {difficulty.value}{marker}")
        choice = self.ask("Difficulty > ")
        if choice.isdigit() and 1 <= int(choice) <= len(DIFFICULTY_CHOICES):
            return DIFFICULTY_CHOICES[int(choice) - 1]
        return DEFAULT_DIFFICULTY

    # -------------------------------------------------------------------------
    # [1] New lesson / [2] Queue
    # -------------------------------------------------------------------------

    def new_lesson(self, topic: Optional[str] = None) -> Optional[LessonResult]:
        """Play lessons on one topic until the learner stops; returns the last result."""
        if not self._require_service():
            return None
        topic = topic or self.ask("Enter topic to learn > ")
        if not topic:
            return None
        difficulty = self.choose_difficulty()

        result = None
        while True:
            self.say(f"\n(AI is researching \"{topic}\"... this takes a little while)")
            try:
                section = self.service.generate_lesson(topic, difficulty)
            except GenerationError as e:
                self.say(f"❌ {e}")
                return result

            result = self.play_section(section)
            while not result.passed and self.ask("Try again? (y/n) > ").lower() == "y":
                result = self.play_section(section)
            if not result.passed:
                return result

            self.history.add_lesson(section, difficulty)
            if self.ask(f"\nNext lesson on {topic}? (y/n) > ").lower() != "y":
                return result

    def show_queue(self):
        pending = self.queue.pending()
        self.say("\n⏳ Learning Queue:")
        if not pending:
            self.say("  (Empty)")
            return
        for index, item in enumerate(pending, start=1):
            self.say(f"  {index}. {item.topic}")

        choice = self.ask("\nEnter number to start (or 0 to go back) > ")
        if choice.isdigit() and 1 <= int(choice) <= len(pending):
            topic = pending[int(choice) - 1].topic
            result = self.new_lesson(topic)
            if result is not None and result.passed:
                self.queue.mark_done(topic)

    # -------------------------------------------------------------------------
    # [3] History / [4] Brain map
    # -------------------------------------------------------------------------

    def show_history(self):
        items = self.history.items()
        if not items:
            self.say("\n📜 No lesson history found.")
            return

        self.say("\n📜 Lesson History:")
        for index, item in enumerate(items, start=1):
            kind = "curriculum" if isinstance(item, CurriculumHistoryItem) else item.difficulty.value
            self.say(f"  [{index}] {item.title} ({kind}, {item.timestamp:%Y-%m-%d})")

        choice = self.ask("\nEnter number to replay (or 0 to go back) > ")
        if not (choice.isdigit() and 1 <= int(choice) <= len(items)):
            return
        item = items[int(choice) - 1]
        if isinstance(item, CurriculumHistoryItem):
            self.navigator.start_curriculum(item.curriculum)
            self.run_curriculum()
        else:
            self.play_section(item.lesson_data)

    def show_brain_map(self):
        self.say("\n🧠 Brain Map")
        self.say(format_brain_map(self.knowledge.brain_map()))

    # -------------------------------------------------------------------------
    # [5] Report scan
    # -------------------------------------------------------------------------

    def latest_report(self) -> Optional[Path]:
        if not self.reports_dir.is_dir():
            return None
        reports = sorted(self.reports_dir.glob("*.md"), key=lambda p: p.name, reverse=True)
        return reports[0] if reports else None

    def report_scan(self):
        report = self.latest_report()
        if report is None:
            self.say(f"\n⚠️  No reports found in {self.reports_dir}")
            return

        try:
            content = report.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read report {report}: {e}")
            self.say(f"❌ Could not read {report.name}")
            return

        self.say(f"\n🌐 Report: {report.name}\n")
        for line in content.splitlines():
            if line.startswith("# "):
                self.say(line[2:].upper())
            elif line.startswith("## "):
                self.say("\n" + line[3:])
            elif line.startswith("### "):
                self.say(line[4:])
            elif line.startswith("* ") or line.startswith("- "):
                self.say("  • " + line[2:])
            else:
                self.say(line)

        if self.ask("\nAdd a topic to the queue? (y/n) > ").lower() == "y":
            topic = self.ask("Topic name > ")
            if topic:
                self.queue.add(topic)
                self.say("Added to queue.")

    # -------------------------------------------------------------------------
    # Curriculum mode
    # -------------------------------------------------------------------------

    def start_file_curriculum(self, path: Path) -> int:
        if not self._require_service():
            return 1
        difficulty = self.choose_difficulty()
        self.say(f"\n(Building a curriculum from {path}...)")
        try:
            curriculum = self.service.generate_curriculum_from_file(path, difficulty)
        except (SourceFileError, GenerationError) as e:
            self.say(f"❌ {e}")
            return 1
        self.navigator.start_curriculum(curriculum)
        self.run_curriculum()
        return 0

    def resume_curriculum(self) -> int:
        if not self.navigator.resume():
            self.say("No saved curriculum to resume.")
            return 1
        self.run_curriculum()
        return 0

    def run_curriculum(self):
        """Play sections in order until the curriculum ends or the learner stops."""
        while True:
            nav = self.navigator
            self.say(f"\n📘 {nav.curriculum.title}: chapter {nav.chapter_index + 1}, section {nav.section_index + 1}")
            result = self.play_section(nav.section)
            if not result.passed:
                if self.ask("Try again? (y/n) > ").lower() == "y":
                    continue
                return

            finished_title = nav.curriculum.title
            step = nav.advance_section()
            if step == NavigationStep.COMPLETE:
                self.history.add_curriculum(nav.curriculum)
                nav.abandon()
                self.say(f"\n🎓 Completed {finished_title}!")
                return
            if step == NavigationStep.MODULE:
                self.say(f"\n🎉 Module {nav.module_index} of {len(nav.modules)} complete!")
            if self.ask("Continue? (y/n) > ").lower() == "n":
                self.say("Progress saved. Use --resume to continue.")
                return

    # -------------------------------------------------------------------------
    # Lesson player
    # -------------------------------------------------------------------------

    def play_section(self, section: Section) -> LessonResult:
        session = LessonSession(section, knowledge=self.knowledge, evaluator=self.service)
        self.say(f"\n💎 {section.title}")
        self.say(RULE)

        while session.phase == LessonPhase.LEARNING:
            slide = session.current_slide
            self.say(f"\n[{session.current_step}/{session.total_steps}] 🔹 {slide.title}")
            self.say(strip_highlights(slide.content))
            if slide.visual_aid_description:
                self.say(f"(Visual: {slide.visual_aid_description})")
            if self.ask("\nEnter = next, b = back > ").lower() == "b":
                session.back_slide()
            else:
                session.next_slide()

        while session.phase == LessonPhase.ASSESSMENT:
            item = session.current_item
            self.say(f"\n[{session.current_step}/{session.total_steps}] {'❤️' * session.hearts}")
            if isinstance(item, Question):
                self._play_question(session, item)
            elif isinstance(item, TeachingPrompt):
                self._play_teaching_prompt(session, item)

        result = session.result
        self.say(f"\n🎉 {result.message}")
        self.say(f"Score: {result.score}/{result.total_questions} ({result.percentage}%), {result.points} points")
        if result.bonus:
            self.say(f"Perfect health bonus: +{result.bonus}")
        return result

    def _play_question(self, session: LessonSession, question: Question):
        if question.title:
            self.say(question.title)
        self.say(f"❓ {question.question_text}")
        options = question.options if question.question_type == QuestionType.MULTIPLE_CHOICE else []
        for index, option in enumerate(options, start=1):
            self.say(f"   [{index}] {option.text}")

        answer = self.ask("\nYour answer > ")
        if options and answer.isdigit() and 1 <= int(answer) <= len(options):
            answer = options[int(answer) - 1].text

        status = session.submit_answer(answer)
        if status == AnswerStatus.CORRECT:
            self.say("✅ Correct!")
        else:
            self.say(f"❌ Incorrect. The right answer was: {question.correct_answer}")
            if session.review_slide is not None:
                self.say(f"Review: {session.review_slide.title}")
        if question.explanation:
            self.say(strip_highlights(question.explanation))

        if not session.is_finished:
            self.ask("\nPress Enter for the next question...")
            session.next_item()

    def _play_teaching_prompt(self, session: LessonSession, prompt: TeachingPrompt):
        self.say(f"🧒 {prompt.prompt_text}")
        while session.current_item is prompt:
            explanation = self.ask("\nExplain it in your own words > ")
            if not explanation:
                self.say("Please type an explanation.")
                continue

            feedback = session.submit_explanation(explanation)
            self.say(f"🧒 {feedback.feedback}")
            if feedback.is_correct:
                self.say("✅ +15 points")
                return

            if feedback.can_show_example and self.ask("I'm stuck, show an example? (y/n) > ").lower() == "y":
                slide = session.reveal_example()
                if slide is not None:
                    self.say(f"\n📖 {slide.title}")
                    self.say(strip_highlights(slide.content))
                self.ask("\nPress Enter to continue...")
                session.next_item()
                return


def build_service(settings: Settings) -> Optional[TutorService]:
    try:
        client = GeminiClient(api_key=settings.api_key, model=settings.model, temperature=settings.temperature)
    except ValueError as e:
        logger.warning(f"AI features disabled: {e}")
        return None
    return TutorService(client, settings)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AI tutor in the terminal")
    parser.add_argument("--data-dir", type=Path, help="Directory for store.db (default: ~/.tutorlab)")
    parser.add_argument("--reports-dir", type=Path, help="Directory scanned for .md reports")
    parser.add_argument("--file", type=Path, help="Build a curriculum from a local text/markdown file")
    parser.add_argument("--resume", action="store_true", help="Continue the saved curriculum")
    parser.add_argument("--log-level", help="Logging level (default: TUTORLAB_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    if args.data_dir:
        settings.data_dir = args.data_dir
    if args.reports_dir:
        settings.reports_dir = args.reports_dir
    if args.log_level:
        settings.log_level = args.log_level.upper()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    store = KeyValueStore(settings.store_path)
    cli = TutorCLI(build_service(settings), store, settings.reports_dir)

    try:
        if args.file:
            return cli.start_file_curriculum(args.file)
        if args.resume:
            return cli.resume_curriculum()
        return cli.run()
    except (EOFError, KeyboardInterrupt):
        cli.say("\nGoodbye.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
