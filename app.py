"""
TutorLab - AI Tutoring App

Streamlit application that generates lessons, curricula and articles with
Gemini and plays them as a learning → quiz flow with hearts, points and a
brain map of what you know.

Usage:
    streamlit run app.py
"""

import logging
import tempfile
from pathlib import Path

import streamlit as st

from tutorlab.classroom import (
    AnswerStatus,
    CurriculumNavigator,
    HistoryLog,
    KeyValueStore,
    KnowledgeTracker,
    LessonPhase,
    LessonSession,
    NavigationStep,
)
from tutorlab.cli import build_service
from tutorlab.config import INITIAL_HEARTS, Settings
from tutorlab.generation import GenerationError, RequestGenerations, SourceFileError
from tutorlab.schemas import (
    ChatMessage,
    CurriculumHistoryItem,
    Difficulty,
    Question,
    QuestionType,
    TeachingPrompt,
)
from tutorlab.viewer import (
    get_brain_map_css,
    get_lesson_css,
    render_brain_map,
    render_hearts,
    render_highlighted_text,
    render_lesson_summary,
    render_question_feedback,
    render_section_overview,
    render_slide,
    render_sources,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

SUGGESTED_TOPICS = [
    "Photosynthesis",
    "The French Revolution",
    "Linear Equations",
    "How Vaccines Work",
    "Black Holes",
    "Supply and Demand",
]

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="TutorLab",
    page_icon="💡",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "settings" not in st.session_state:
        st.session_state.settings = Settings.from_env()

    settings = st.session_state.settings

    if "store" not in st.session_state:
        st.session_state.store = KeyValueStore(settings.store_path)

    store = st.session_state.store

    if "service" not in st.session_state:
        st.session_state.service = build_service(settings)

    if "knowledge" not in st.session_state:
        st.session_state.knowledge = KnowledgeTracker(store)

    if "history" not in st.session_state:
        st.session_state.history = HistoryLog(store)

    if "navigator" not in st.session_state:
        st.session_state.navigator = CurriculumNavigator(store)
        st.session_state.navigator.resume()

    if "requests" not in st.session_state:
        st.session_state.requests = RequestGenerations()

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "home"  # home, lesson, module_summary, explore, brain, history, settings

    if "lesson" not in st.session_state:
        st.session_state.lesson = None

    if "lesson_topic" not in st.session_state:
        st.session_state.lesson_topic = None

    if "difficulty" not in st.session_state:
        st.session_state.difficulty = Difficulty.HIGH_SCHOOL

    if "teaching_feedback" not in st.session_state:
        st.session_state.teaching_feedback = None

    if "feed_items" not in st.session_state:
        st.session_state.feed_items = []

    if "article" not in st.session_state:
        st.session_state.article = None

    if "chat" not in st.session_state:
        st.session_state.chat = []

    if "related_topics" not in st.session_state:
        st.session_state.related_topics = []


def set_view(view_mode: str):
    st.session_state.view_mode = view_mode
    st.rerun()


def start_session(section):
    st.session_state.lesson = LessonSession(
        section,
        knowledge=st.session_state.knowledge,
        evaluator=st.session_state.service,
        initial_hearts=INITIAL_HEARTS,
    )
    st.session_state.teaching_feedback = None
    st.session_state.related_topics = []


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with navigation and curriculum progress."""
    st.sidebar.title("💡 TutorLab")

    if st.session_state.service is None:
        st.sidebar.error("GEMINI_API_KEY not set. Check your .env file.")

    views = {
        "Home": "home",
        "Explore": "explore",
        "Brain Map": "brain",
        "History": "history",
        "Settings": "settings",
    }
    for label, view_mode in views.items():
        if st.sidebar.button(label, key=f"nav_{view_mode}", use_container_width=True):
            set_view(view_mode)

    nav = st.session_state.navigator
    if nav.is_active:
        st.sidebar.divider()
        st.sidebar.subheader(nav.topic_title)
        if nav.modules:
            st.sidebar.caption(f"Module {nav.module_index + 1} of {len(nav.modules)}")
        for chapter in nav.progress_outline():
            with st.sidebar.expander(chapter["title"], expanded=any(s["state"] == "current" for s in chapter["sections"])):
                for section in chapter["sections"]:
                    indicator = {"done": "✅", "current": "▶️", "upcoming": "⬜"}[section["state"]]
                    st.markdown(f"{indicator} {section['title']}")
        if st.sidebar.button("Leave curriculum", use_container_width=True):
            nav.abandon()
            st.session_state.lesson = None
            set_view("home")


# -----------------------------------------------------------------------------
# Home: topic selection
# -----------------------------------------------------------------------------

def render_home_view():
    st.title("What do you want to learn today?")

    nav = st.session_state.navigator
    if nav.is_active and st.session_state.lesson is None:
        st.info(f"You have a curriculum in progress: **{nav.curriculum.title}**")
        if st.button("Resume curriculum", type="primary"):
            start_session(nav.section)
            set_view("lesson")

    difficulty = st.selectbox(
        "Difficulty",
        list(Difficulty),
        index=list(Difficulty).index(st.session_state.difficulty),
        format_func=lambda d: d.value.title(),
    )
    st.session_state.difficulty = difficulty

    st.subheader("Pick a topic")
    columns = st.columns(3)
    for index, topic in enumerate(SUGGESTED_TOPICS):
        with columns[index % 3]:
            if st.button(topic, key=f"topic_{index}", use_container_width=True):
                start_lesson(topic, difficulty)

    custom_topic = st.text_input("Or enter your own topic", placeholder="e.g., Quantum entanglement")
    if st.button("Start lesson", disabled=not custom_topic.strip()):
        start_lesson(custom_topic.strip(), difficulty)

    st.divider()
    st.subheader("Learn from your own notes")
    uploaded = st.file_uploader("Upload a text or markdown file", type=["txt", "md"])
    if uploaded is not None and st.button("Build curriculum"):
        start_file_curriculum(uploaded, difficulty)


def start_lesson(topic: str, difficulty: Difficulty):
    service = st.session_state.service
    if service is None:
        st.error("GEMINI_API_KEY not set. Check your .env file.")
        return

    ticket = st.session_state.requests.begin("lesson")
    with st.spinner(f"Generating a lesson on {topic}..."):
        try:
            section = service.generate_lesson(topic, difficulty)
        except GenerationError as e:
            st.error(str(e))
            return

    if not st.session_state.requests.is_current(ticket):
        logger.info(f"Dropping stale lesson for '{topic}'")
        return

    st.session_state.navigator.abandon()
    st.session_state.lesson_topic = topic
    st.session_state.difficulty = difficulty
    start_session(section)
    set_view("lesson")


def start_file_curriculum(uploaded, difficulty: Difficulty):
    service = st.session_state.service
    if service is None:
        st.error("GEMINI_API_KEY not set. Check your .env file.")
        return

    suffix = Path(uploaded.name).suffix or ".txt"
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as handle:
        handle.write(uploaded.getvalue())
        temp_path = Path(handle.name)

    ticket = st.session_state.requests.begin("lesson")
    try:
        with st.spinner(f"Building a curriculum from {uploaded.name}..."):
            curriculum = service.generate_curriculum_from_file(
                temp_path, difficulty, topic=Path(uploaded.name).stem
            )
    except (SourceFileError, GenerationError) as e:
        st.error(f"{e} You can try uploading the file again.")
        return
    finally:
        temp_path.unlink(missing_ok=True)

    if not st.session_state.requests.is_current(ticket):
        return
    section = st.session_state.navigator.start_curriculum(curriculum)
    start_session(section)
    set_view("lesson")


# -----------------------------------------------------------------------------
# Lesson player
# -----------------------------------------------------------------------------

def render_lesson_view():
    session: LessonSession = st.session_state.lesson
    if session is None:
        st.info("Pick a topic on the home page to begin.")
        return

    theme = st.session_state.store.get_theme()
    st.markdown(get_lesson_css(theme), unsafe_allow_html=True)

    col1, col2 = st.columns([3, 1])
    with col1:
        st.title(session.section.title)
    with col2:
        st.markdown(render_hearts(session.hearts, session.initial_hearts), unsafe_allow_html=True)
        st.caption(f"⭐ {session.points} points")
    st.progress(session.current_step / max(1, session.total_steps))

    if session.phase == LessonPhase.LEARNING:
        render_learning_phase(session)
    elif session.phase == LessonPhase.ASSESSMENT:
        render_assessment_phase(session)
    else:
        render_finished_phase(session)


def render_learning_phase(session: LessonSession):
    if session.learning_index == 0:
        st.markdown(render_section_overview(session.section), unsafe_allow_html=True)

    slide = session.current_slide
    st.markdown(
        render_slide(slide, session.learning_index, len(session.slides)),
        unsafe_allow_html=True,
    )

    col1, col2 = st.columns(2)
    with col1:
        if st.button("← Back", disabled=session.learning_index == 0, use_container_width=True):
            session.back_slide()
            st.rerun()
    with col2:
        if st.button("Next →", type="primary", use_container_width=True):
            session.next_slide()
            st.rerun()


def render_assessment_phase(session: LessonSession):
    item = session.current_item
    if isinstance(item, Question):
        render_question(session, item)
    elif isinstance(item, TeachingPrompt):
        render_teaching_prompt(session, item)


def render_question(session: LessonSession, question: Question):
    if question.title:
        st.subheader(question.title)
    st.markdown(f"**{question.question_text}**")

    key = f"answer_{session.assessment_index}"
    answered = session.status != AnswerStatus.UNANSWERED

    if question.question_type == QuestionType.MULTIPLE_CHOICE and question.options:
        answer = st.radio(
            "Choose an answer",
            [option.text for option in question.options],
            key=key,
            disabled=answered,
            label_visibility="collapsed",
        )
        definitions = {option.text: option.definition for option in question.options}
        if answered and definitions.get(answer):
            st.caption(definitions[answer])
    else:
        if question.interaction_type and question.initial_state:
            state = question.initial_state.model_dump(exclude_none=True, exclude_defaults=True)
            st.caption(", ".join(f"{name}: {value}" for name, value in state.items()))
        answer = st.text_input("Your answer", key=key, disabled=answered)

    if not answered:
        if st.button("Check", type="primary", disabled=not (answer or "").strip()):
            with st.spinner("Checking..."):
                session.submit_answer(answer)
            st.rerun()
        return

    st.markdown(
        render_question_feedback(question, session.status == AnswerStatus.CORRECT),
        unsafe_allow_html=True,
    )
    if session.review_slide is not None:
        with st.expander(f"Review: {session.review_slide.title}"):
            st.markdown(render_highlighted_text(session.review_slide.content), unsafe_allow_html=True)

    if st.button("Continue", type="primary"):
        session.next_item()
        st.rerun()


def render_teaching_prompt(session: LessonSession, prompt: TeachingPrompt):
    st.subheader("🧒 Can you teach me?")
    st.markdown(f"**{prompt.prompt_text}**")

    feedback = st.session_state.teaching_feedback
    if feedback is not None and not feedback.is_correct:
        st.warning(feedback.feedback)
        if session.review_slide is not None and not session.example_shown:
            st.caption(f"Hint: look back at \"{session.review_slide.title}\"")

    if session.example_shown:
        slide = session.review_slide
        if slide is not None:
            st.markdown(render_slide(slide), unsafe_allow_html=True)
        if st.button("Continue", type="primary"):
            st.session_state.teaching_feedback = None
            session.next_item()
            st.rerun()
        return

    explanation = st.text_area("Explain it in your own words", key=f"explain_{session.assessment_index}_{session.failed_attempts}")
    if st.button("Explain", type="primary", disabled=not explanation.strip()):
        with st.spinner("Listening..."):
            result = session.submit_explanation(explanation)
        if result.is_correct:
            st.session_state.teaching_feedback = None
            st.toast(f"{result.feedback} +15 points")
        else:
            st.session_state.teaching_feedback = result
        st.rerun()

    if feedback is not None and feedback.can_show_example:
        if st.button("I'm stuck, show example"):
            session.reveal_example()
            st.rerun()


def render_finished_phase(session: LessonSession):
    result = session.result
    st.markdown(render_lesson_summary(result), unsafe_allow_html=True)

    nav = st.session_state.navigator
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Try again", key="finish_retry", use_container_width=True):
            session.restart()
            st.session_state.teaching_feedback = None
            st.rerun()
    with col2:
        if result.passed and st.button("Continue", key="finish_continue", type="primary", use_container_width=True):
            if nav.is_active:
                advance_curriculum()
            else:
                continue_single_lesson(session)


def continue_single_lesson(session: LessonSession):
    """Record a passed lesson and move on to a fresh one on the same topic."""
    st.session_state.history.add_lesson(session.section, st.session_state.difficulty)
    topic = st.session_state.lesson_topic
    if topic and st.session_state.service is not None:
        start_lesson(topic, st.session_state.difficulty)
        return
    st.session_state.lesson = None
    set_view("home")


def advance_curriculum():
    nav = st.session_state.navigator
    curriculum = nav.curriculum
    step = nav.advance_section()

    if step == NavigationStep.COMPLETE:
        st.session_state.history.add_curriculum(curriculum)
        nav.abandon()
        st.session_state.lesson = None
        st.balloons()
        set_view("home")
        return

    if step == NavigationStep.MODULE:
        st.session_state.related_topics = []
        if st.session_state.service is not None:
            try:
                st.session_state.related_topics = st.session_state.service.generate_related_topics(nav.topic_title)
            except GenerationError as e:
                logger.warning(f"Related topics unavailable: {e}")
        st.session_state.lesson = None
        set_view("module_summary")
        return

    start_session(nav.section)
    st.rerun()


def render_module_summary_view():
    nav = st.session_state.navigator
    if not nav.is_active:
        st.info("Pick a topic on the home page to begin.")
        return

    st.title(f"🎉 Module {nav.module_index} Complete!")
    st.write("You're making great progress. What's next?")

    label = f"Start Next Module ({nav.module_index + 1} of {len(nav.modules)})"
    if st.button(label, key="start_next_module", type="primary", use_container_width=True):
        start_session(nav.section)
        set_view("lesson")

    if st.session_state.related_topics:
        st.subheader("Explore Related Topics")
        for topic in st.session_state.related_topics:
            if st.button(topic, key=f"related_{topic}", use_container_width=True):
                start_lesson(topic, st.session_state.difficulty)

    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Create a New Lesson", key="module_new_lesson", use_container_width=True):
            nav.abandon()
            st.session_state.related_topics = []
            set_view("home")
    with col2:
        if st.button("Back to Explore", key="module_explore", use_container_width=True):
            set_view("explore")


# -----------------------------------------------------------------------------
# Explore: feed, articles, chat
# -----------------------------------------------------------------------------

def render_explore_view():
    st.title("🌐 Explore")
    service = st.session_state.service
    if service is None:
        st.error("GEMINI_API_KEY not set. Check your .env file.")
        return

    article = st.session_state.article
    if article is not None:
        render_article(article)
        return

    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("Search a topic", placeholder="e.g., CRISPR")
    with col2:
        st.write("")
        if st.button("Search", disabled=not query.strip(), use_container_width=True):
            try:
                with st.spinner("Searching..."):
                    item = service.generate_feed_item(query.strip())
                st.session_state.feed_items.insert(0, item)
            except GenerationError as e:
                st.error(str(e))

    if st.button("Load more topics" if st.session_state.feed_items else "Load topics"):
        ticket = st.session_state.requests.begin("feed")
        existing = [item.title for item in st.session_state.feed_items]
        try:
            with st.spinner("Finding fresh topics..."):
                items = service.generate_feed(existing)
            if st.session_state.requests.is_current(ticket):
                st.session_state.feed_items.extend(items)
        except GenerationError as e:
            st.error(str(e))

    for index, item in enumerate(st.session_state.feed_items):
        with st.container(border=True):
            st.markdown(f"### {item.emoji} {item.title}")
            st.write(item.summary)
            if st.button("Read article", key=f"feed_{index}"):
                stream_article(item.title, item.summary)


def stream_article(title: str, summary: str):
    service = st.session_state.service
    ticket = st.session_state.requests.begin("article")
    st.subheader(title)
    stream = service.stream_article(title, summary)
    try:
        st.write_stream(stream)
        article = stream.result()
    except GenerationError as e:
        st.error(str(e))
        return
    except ValueError as e:
        logger.error(f"Article metadata unreadable: {e}")
        st.error("The AI returned an invalid response. Please try again.")
        return

    if st.session_state.requests.is_current(ticket):
        st.session_state.article = (title, article)
        st.session_state.chat = []
        st.rerun()


def render_article(article_entry):
    title, article = article_entry
    if st.button("← Back to feed"):
        st.session_state.article = None
        st.rerun()

    st.title(title)
    st.markdown(article.content)
    with st.expander("Summary & key points", expanded=True):
        st.write(article.summary)
        for point in article.key_points:
            st.markdown(f"- {point}")
        if article.bias_analysis:
            st.caption(f"Bias analysis: {article.bias_analysis}")
    st.markdown(render_sources(article.sources), unsafe_allow_html=True)

    if st.button("Turn this into a learning path", type="primary"):
        try:
            with st.spinner("Generating learning modules... This may take a minute."):
                modules = st.session_state.service.generate_modules_from_article(
                    article.content, title, st.session_state.difficulty
                )
        except GenerationError as e:
            st.error(str(e))
            return
        section = st.session_state.navigator.start_modules(modules)
        st.session_state.article = None
        start_session(section)
        set_view("lesson")

    render_chat(f"{title}: {article.summary}")


def render_chat(topic_context: str):
    st.divider()
    st.subheader("💬 Ask about this topic")
    for message in st.session_state.chat:
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.markdown(message.text)

    user_input = st.chat_input("Ask a follow-up question")
    if user_input:
        history = list(st.session_state.chat)
        st.session_state.chat.append(ChatMessage(role="user", text=user_input))
        try:
            reply = st.session_state.service.chat_reply(topic_context, history, user_input)
        except GenerationError as e:
            reply = str(e)
        st.session_state.chat.append(ChatMessage(role="model", text=reply))
        st.rerun()


# -----------------------------------------------------------------------------
# Brain map, history, settings
# -----------------------------------------------------------------------------

def render_brain_view():
    st.title("🧠 Brain Map")
    st.markdown(get_brain_map_css(), unsafe_allow_html=True)
    st.markdown(render_brain_map(st.session_state.knowledge.brain_map()), unsafe_allow_html=True)


def render_history_view():
    st.title("📜 History")
    items = st.session_state.history.items()
    if not items:
        st.info("Finished lessons and curricula show up here.")
        return

    for item in items:
        col1, col2 = st.columns([4, 1])
        with col1:
            kind = "📚 Curriculum" if isinstance(item, CurriculumHistoryItem) else f"📝 {item.difficulty.value.title()}"
            st.markdown(f"**{item.title}**  \n{kind} · {item.timestamp:%Y-%m-%d %H:%M}")
        with col2:
            if st.button("Open", key=f"history_{item.id}", use_container_width=True):
                recall_history_item(item)


def recall_history_item(item):
    nav = st.session_state.navigator
    if isinstance(item, CurriculumHistoryItem):
        section = nav.start_curriculum(item.curriculum)
        st.session_state.difficulty = Difficulty.HIGH_SCHOOL
    else:
        nav.abandon()
        section = item.lesson_data
        st.session_state.difficulty = item.difficulty
    st.session_state.lesson_topic = item.title
    start_session(section)
    set_view("lesson")


def render_settings_view():
    st.title("⚙️ Settings")
    store = st.session_state.store

    dark = st.toggle("Dark theme", value=store.get_theme() == "dark")
    store.set_theme("dark" if dark else "light")

    st.divider()
    st.subheader("Data")
    if st.button("Clear brain map"):
        st.session_state.knowledge.clear()
        st.success("Brain map cleared.")
    if st.button("Clear history"):
        st.session_state.history.clear()
        st.success("History cleared.")
    if st.button("Clear all data", type="primary"):
        store.clear()
        for key in ("knowledge", "history", "navigator", "lesson"):
            st.session_state.pop(key, None)
        st.success("All data cleared.")
        st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    view_mode = st.session_state.view_mode
    if view_mode == "lesson":
        render_lesson_view()
    elif view_mode == "module_summary":
        render_module_summary_view()
    elif view_mode == "explore":
        render_explore_view()
    elif view_mode == "brain":
        render_brain_view()
    elif view_mode == "history":
        render_history_view()
    elif view_mode == "settings":
        render_settings_view()
    else:
        render_home_view()


if __name__ == "__main__":
    main()
