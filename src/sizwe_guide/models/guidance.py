"""
Guidance data models.

Chat turns, mark submissions and the structured recommendations
returned by the AI gateway for learners and students.
"""

from enum import Enum
from typing import List, Dict
from pydantic import BaseModel, Field, validator


SIZWE_GREETING = (
    "Hello! I'm Sizwe The Bot, your educational guidance assistant. "
    "I can help you with questions about courses, careers, and educational "
    "pathways in South Africa. What would you like to know?"
)


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One turn of a conversation."""
    role: ChatRole = Field(..., description="Who spoke")
    content: str = Field(..., description="Turn text")


class Conversation(BaseModel):
    """Ordered chat history, seeded with the assistant greeting."""
    messages: List[ChatMessage] = Field(
        default_factory=lambda: [ChatMessage(role=ChatRole.ASSISTANT, content=SIZWE_GREETING)],
        description="Turns in order"
    )

    def add_user(self, content: str) -> ChatMessage:
        message = ChatMessage(role=ChatRole.USER, content=content)
        self.messages.append(message)
        return message

    def add_assistant(self, content: str) -> ChatMessage:
        message = ChatMessage(role=ChatRole.ASSISTANT, content=content)
        self.messages.append(message)
        return message

    def as_turns(self) -> List[Dict[str, str]]:
        """Export as plain {role, content} dicts for the gateway."""
        return [{"role": m.role.value, "content": m.content} for m in self.messages]


class MarksSubmission(BaseModel):
    """Grade plus subject marks as entered on the form."""
    grade: str = Field(..., description="Current grade, e.g. '10'")
    marks: Dict[str, str] = Field(default_factory=dict, description="Subject -> percentage string")

    @validator("grade", pre=True)
    def validate_grade(cls, v):
        v = str(v).strip()
        if v not in {"9", "10", "11", "12"}:
            raise ValueError("Grade must be one of 9, 10, 11 or 12")
        return v

    @validator("marks", pre=True)
    def validate_marks(cls, v):
        cleaned = {}
        for subject, mark in (v or {}).items():
            mark = "" if mark is None else str(mark).strip()
            if mark:
                try:
                    value = float(mark)
                except ValueError:
                    raise ValueError(f"Mark for {subject} must be a number")
                if not 0 <= value <= 100:
                    raise ValueError(f"Mark for {subject} must be between 0 and 100")
            cleaned[subject] = mark
        return cleaned

    @property
    def filled_marks(self) -> Dict[str, str]:
        """Marks with blanks removed."""
        return {subject: mark for subject, mark in self.marks.items() if mark != ""}

    @property
    def average(self) -> float:
        values = [float(mark) for mark in self.filled_marks.values()]
        if not values:
            return 0.0
        return sum(values) / len(values)


class Pathway(str, Enum):
    GRADE12 = "grade12"
    TVET = "tvet"


class LearnerRecommendation(BaseModel):
    """Grade 12 vs. TVET recommendation for a learner."""
    pathway: Pathway = Field(..., description="Recommended route")
    reasoning: str = Field("", description="Why this path suits the learner")
    recommendations: List[str] = Field(default_factory=list, description="Specific suggestions")
    next_steps: List[str] = Field(default_factory=list, description="Action steps")

    @validator("pathway", pre=True)
    def normalize_pathway(cls, v):
        if isinstance(v, Pathway):
            return v
        v = str(v).strip().lower().replace(" ", "")
        if v in {"grade12", "grade_12", "matric"}:
            return Pathway.GRADE12
        return v


class Course(BaseModel):
    name: str
    institution: str = ""
    type: str = Field("university", description="university or tvet")
    requirements: str = ""
    duration: str = ""


class Career(BaseModel):
    title: str
    description: str = ""
    salary_range: str = ""
    demand: str = Field("medium", description="high, medium or scarce")

    @validator("demand", pre=True)
    def normalize_demand(cls, v):
        v = str(v or "medium").strip().lower()
        return v if v in {"high", "medium", "scarce"} else "medium"


class StudentRecommendation(BaseModel):
    """Courses, careers and scarce skills for a Grade 11-12 student."""
    courses: List[Course] = Field(default_factory=list)
    careers: List[Career] = Field(default_factory=list)
    scarce_skills: List[str] = Field(default_factory=list)
    overall_assessment: str = ""

    @property
    def scarce_careers(self) -> List[Career]:
        return [career for career in self.careers if career.demand == "scarce"]

