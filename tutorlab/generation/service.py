"""
TutorService - Every content-generating call the app makes.

Each call renders a YAML prompt template, sends it through GeminiClient
under the retry policy, and decodes the reply into a pydantic model.
Decoding failures count as failed attempts, so a malformed reply is retried
before the learner sees "please try again".
"""

import json
import logging
import time
from datetime import date
from pathlib import Path
from typing import Callable, Iterator, Optional, Type, TypeVar

from pydantic import BaseModel

from tutorlab.config import (
    ARTICLE_JSON_SEPARATOR,
    ARTICLE_SOURCE_LIMIT,
    CURRICULUM_SOURCE_LIMIT,
    NUM_QUESTIONS,
    Settings,
)
from tutorlab.schemas import (
    ArticleData,
    ArticleMetadata,
    ChatMessage,
    Curriculum,
    Difficulty,
    ExplanationVerdict,
    FeedItem,
    FeedItems,
    FillBlankVerdict,
    ModuleList,
    RelatedTopics,
    Section,
    Source,
)
from tutorlab.utils import is_math_topic, render_prompt, truncate_source

from .client import UNAVAILABLE_MESSAGE, GeminiClient, GenerationError, StreamChunk, with_retries
from .decoder import DecodeError, StreamSplitter, decode_model

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MATH_GUIDELINE = (
    "- The questions should be a mix of 'multiple-choice', 'fill-in-the-blank', "
    "and 'math-interaction' types."
)
NO_MATH_GUIDELINE = (
    "- This topic is NOT mathematical. You MUST NOT generate any questions with the "
    "'math-interaction' type. Only use 'multiple-choice' and 'fill-in-the-blank' "
    "question types. This is a very strict rule."
)


class SourceFileError(Exception):
    """A curriculum source file could not be read."""


def schema_text(model_cls: Type[BaseModel]) -> str:
    return json.dumps(model_cls.model_json_schema(), indent=2)


def math_guideline(topic: str) -> str:
    return MATH_GUIDELINE if is_math_topic(topic) else NO_MATH_GUIDELINE


def uses_search(difficulty: Difficulty) -> bool:
    """Lessons above elementary level are grounded with Google Search."""
    return difficulty != Difficulty.ELEMENTARY


class ArticleStream:
    """
    A streamed article: prose while it arrives, metadata at the end.

    Iterate to receive prose fragments as they become final. result()
    drains whatever is left and parses the metadata that follows the
    separator.
    """

    def __init__(self, chunks: Iterator[StreamChunk], delimiter: str = ARTICLE_JSON_SEPARATOR):
        self.splitter = StreamSplitter(delimiter)
        self.sources: list[Source] = []
        self._iter = self._run(chunks)

    def _run(self, chunks: Iterator[StreamChunk]) -> Iterator[str]:
        try:
            for chunk in chunks:
                if not self.sources and chunk.sources:
                    self.sources = chunk.sources
                prose = self.splitter.feed(chunk.text)
                if prose:
                    yield prose
        except GenerationError:
            raise
        except Exception as e:
            logger.error(f"Article stream failed: {e}")
            raise GenerationError(UNAVAILABLE_MESSAGE) from e
        tail = self.splitter.close()
        if tail:
            yield tail

    def __iter__(self) -> Iterator[str]:
        return self._iter

    def result(self) -> ArticleData:
        for _ in self._iter:
            pass
        if not self.splitter.found:
            raise DecodeError("Article stream ended without metadata", raw_text=self.splitter.prose)
        metadata = decode_model(self.splitter.json_text, ArticleMetadata)
        return ArticleData(
            content=self.splitter.prose.strip(),
            summary=metadata.summary,
            key_points=metadata.key_points,
            bias_analysis=metadata.bias_analysis,
            sources=self.sources,
        )


class TutorService:
    """
    Generate and evaluate learning content.

    Args:
        client: GeminiClient (or any object with the same generate methods)
        settings: Retry settings; defaults to Settings()
        sleep: Sleep function used between retries
    """

    def __init__(
        self,
        client: GeminiClient,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.settings = settings or Settings()
        self._sleep = sleep

    def _generate_model(
        self,
        prompt_name: str,
        model_cls: Type[ModelT],
        use_search: bool = False,
        **kwargs,
    ) -> tuple[ModelT, list[Source]]:
        prompt, meta = render_prompt(prompt_name, schema=schema_text(model_cls), **kwargs)
        temperature = meta.get("temperature")

        def attempt():
            result = self.client.generate(prompt, use_search=use_search, temperature=temperature)
            return decode_model(result.text, model_cls), result.sources

        return with_retries(
            attempt,
            retries=self.settings.max_retries,
            base_delay=self.settings.retry_base_delay,
            sleep=self._sleep,
        )

    # -------------------------------------------------------------------------
    # Lessons and curricula
    # -------------------------------------------------------------------------

    def generate_lesson(self, title: str, difficulty: Difficulty) -> Section:
        """Generate a single self-contained lesson section."""
        search = uses_search(difficulty)
        section, sources = self._generate_model(
            "generate_lesson",
            Section,
            use_search=search,
            title=title,
            difficulty=difficulty.value,
            num_questions=NUM_QUESTIONS,
            math_guideline=math_guideline(title),
        )
        if sources:
            section = section.model_copy(update={"sources": sources})
        logger.info(
            f"Generated lesson '{section.title}': {len(section.learning_material)} slides, "
            f"{len(section.questions)} questions"
        )
        return section

    def generate_curriculum(self, content: str, topic: str, difficulty: Difficulty) -> Curriculum:
        """Build one curriculum module from source text."""
        curriculum, sources = self._generate_model(
            "generate_curriculum",
            Curriculum,
            topic=topic,
            difficulty=difficulty.value,
            content=truncate_source(content, CURRICULUM_SOURCE_LIMIT),
            num_questions=NUM_QUESTIONS,
            math_guideline=math_guideline(topic),
        )
        if sources:
            curriculum = curriculum.model_copy(update={"sources": sources})
        logger.info(f"Generated curriculum '{curriculum.title}' with {curriculum.section_count} sections")
        return curriculum

    def generate_curriculum_from_file(
        self,
        path: Path,
        difficulty: Difficulty,
        topic: Optional[str] = None,
    ) -> Curriculum:
        """Read a local text/markdown file and build a curriculum from it."""
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Could not read source file {path}: {e}")
            raise SourceFileError(f"Could not read '{path.name}'. Check the file and try again.") from e
        if not content.strip():
            raise SourceFileError(f"'{path.name}' is empty.")

        topic = topic or path.stem.replace("_", " ").replace("-", " ")
        return self.generate_curriculum(content, topic, difficulty)

    def generate_modules_from_article(self, content: str, topic: str, difficulty: Difficulty) -> list[Curriculum]:
        """Split an article into a multi-part learning path."""
        module_list, _ = self._generate_model(
            "generate_modules",
            ModuleList,
            topic=topic,
            difficulty=difficulty.value,
            content=truncate_source(content, ARTICLE_SOURCE_LIMIT),
            num_questions=NUM_QUESTIONS,
            math_guideline=math_guideline(topic),
        )
        logger.info(f"Generated {len(module_list.modules)} modules for '{topic}'")
        return module_list.modules

    def generate_related_topics(self, topic: str) -> list[str]:
        related, _ = self._generate_model("related_topics", RelatedTopics, topic=topic)
        return related.topics

    # -------------------------------------------------------------------------
    # Answer evaluation
    # -------------------------------------------------------------------------

    def evaluate_fill_in_the_blank(self, question_text: str, correct_answer: str, user_answer: str) -> bool:
        verdict, _ = self._generate_model(
            "evaluate_fill_blank",
            FillBlankVerdict,
            question_text=question_text,
            correct_answer=correct_answer,
            user_answer=user_answer,
        )
        return verdict.is_correct

    def evaluate_explanation(self, prompt_text: str, user_answer: str, original_context: str) -> ExplanationVerdict:
        verdict, _ = self._generate_model(
            "evaluate_explanation",
            ExplanationVerdict,
            prompt_text=prompt_text,
            user_answer=user_answer,
            original_context=original_context,
        )
        return verdict

    # -------------------------------------------------------------------------
    # Explore: articles, feed, chat
    # -------------------------------------------------------------------------

    def stream_article(self, title: str, summary: str) -> ArticleStream:
        prompt, meta = render_prompt(
            "generate_article",
            title=title,
            summary=summary,
            separator=ARTICLE_JSON_SEPARATOR,
            schema=schema_text(ArticleMetadata),
        )
        chunks = self.client.generate_stream(prompt, use_search=True, temperature=meta.get("temperature"))
        return ArticleStream(chunks)

    def generate_feed(self, existing_titles: list[str], topics: Optional[list[str]] = None) -> list[FeedItem]:
        """Fresh, search-grounded feed items, avoiding titles already shown."""
        topics = topics or self.settings.explore_topics
        excluded = "\n".join(f'- "{title}"' for title in existing_titles) or "- (none)"
        feed, _ = self._generate_model(
            "generate_feed",
            FeedItems,
            use_search=True,
            current_date=date.today().isoformat(),
            topics=", ".join(topics),
            existing_titles=excluded,
        )
        return feed.feed_items

    def generate_feed_item(self, query: str) -> FeedItem:
        item, _ = self._generate_model("generate_feed_item", FeedItem, query=query)
        return item

    def chat_reply(self, topic_context: str, history: list[ChatMessage], user_input: str) -> str:
        formatted_history = "\n".join(
            f"**{'User' if message.role == 'user' else 'AI'}**: {message.text}" for message in history
        )
        prompt, meta = render_prompt(
            "chat",
            topic_context=topic_context,
            history=formatted_history,
            user_input=user_input,
        )

        def attempt():
            result = self.client.generate(prompt, json_output=False, temperature=meta.get("temperature"))
            return result.text.strip()

        return with_retries(
            attempt,
            retries=self.settings.max_retries,
            base_delay=self.settings.retry_base_delay,
            sleep=self._sleep,
        )
