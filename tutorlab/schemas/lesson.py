"""
Lesson content schemas for TutorLab.

Defines Pydantic models for a generated lesson section:
- Learning slides (with [[term]] reveal markers)
- Questions (multiple-choice, fill-in-the-blank, math-interaction)
- Teaching prompts (explain-it-back items)
- Section container with slide back-reference validation
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class Difficulty(str, Enum):
    ELEMENTARY = "elementary school"
    HIGH_SCHOOL = "high school"
    COLLEGE = "college"
    POST_GRADUATE = "post-graduate"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    MATH_INTERACTION = "math-interaction"


class MathInteractionType(str, Enum):
    CALCULATION_PAD = "calculation-pad"
    EQUATION_BALANCER = "equation-balancer"
    GRAPHING_CANVAS = "graphing-canvas"
    GEOMETRIC_SANDBOX = "geometric-sandbox"
    CALCULUS_VISUALIZER = "calculus-visualizer"


class Source(BaseModel):
    """Grounding citation attached to a search-augmented response."""
    uri: str
    title: str


class LearningSlide(BaseModel):
    title: str
    content: str  # may contain [[term]] markers
    visual_aid_description: Optional[str] = None


# -----------------------------------------------------------------------------
# Math interaction state
# -----------------------------------------------------------------------------

class GeoObject(BaseModel):
    """Point, line or polygon placed in the geometric sandbox."""
    type: Literal["point", "line", "polygon"]
    id: str
    x: Optional[float] = None
    y: Optional[float] = None
    label: Optional[str] = None
    p1_id: Optional[str] = None
    p2_id: Optional[str] = None
    point_ids: list[str] = []


class MathInitialState(BaseModel):
    expression: Optional[str] = None          # calculation pad
    left_side: Optional[str] = None           # equation balancer
    right_side: Optional[str] = None
    equation: Optional[str] = None            # graphing canvas (line)
    prompt: Optional[str] = None              # graphing canvas (point) or others
    geometric_task: Optional[Literal["MEASURE_ANGLE", "CONSTRUCT_SHAPE", "TRANSFORM_SHAPE"]] = None
    initial_objects: list[GeoObject] = []
    calculus_task: Optional[Literal["DERIVATIVE", "INTEGRAL", "LIMIT"]] = None
    function_string: Optional[str] = None
    integral_range: Optional[tuple[float, float]] = None
    limit_point: Optional[float] = None


# -----------------------------------------------------------------------------
# Assessment items
# -----------------------------------------------------------------------------

class QuestionOption(BaseModel):
    text: str
    definition: str = ""


class Question(BaseModel):
    title: Optional[str] = None  # short label, used by fill-in-the-blank
    question_text: str
    question_type: QuestionType
    interaction_type: Optional[MathInteractionType] = None
    initial_state: Optional[MathInitialState] = None
    options: list[QuestionOption] = []
    correct_answer: str
    explanation: str = ""
    related_slide_index: int = Field(..., ge=0)


class TeachingPrompt(BaseModel):
    """Prompt asking the learner to explain a slide back in their own words."""
    prompt_text: str
    related_slide_index: int = Field(..., ge=0)


AssessmentItem = Union[Question, TeachingPrompt]


# -----------------------------------------------------------------------------
# Section
# -----------------------------------------------------------------------------

class Section(BaseModel):
    """
    One learning + quiz unit.

    When slides are present, every question and teaching prompt must point
    at one of them through related_slide_index.
    """
    title: str
    summary: Optional[str] = None
    key_points: list[str] = []
    bias_analysis: Optional[str] = None
    learning_material: list[LearningSlide] = []
    teaching_prompts: list[TeachingPrompt] = []
    questions: list[Question] = []
    sources: list[Source] = []

    @model_validator(mode="after")
    def check_slide_references(self):
        slide_count = len(self.learning_material)
        if slide_count == 0:
            return self
        for item in [*self.questions, *self.teaching_prompts]:
            if item.related_slide_index >= slide_count:
                raise ValueError(
                    f"related_slide_index {item.related_slide_index} out of range "
                    f"for {slide_count} slides in section '{self.title}'"
                )
        return self

    def related_slide(self, item: AssessmentItem) -> Optional[LearningSlide]:
        """Slide referenced by an assessment item, or None if it has no such slide."""
        index = item.related_slide_index
        if 0 <= index < len(self.learning_material):
            return self.learning_material[index]
        return None
