"""Learner and student pathway recommendations from the AI gateway."""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..errors import UpstreamParseError
from ..models.guidance import LearnerRecommendation, MarksSubmission, StudentRecommendation
from .ai_gateway import AIGateway


logger = logging.getLogger(__name__)

LEARNER_SUBJECTS = [
    "Mathematics", "English", "Afrikaans", "Physical Sciences", "Life Sciences",
    "Geography", "History", "Accounting", "Business Studies", "Economics",
    "Life Orientation", "Technology", "Agricultural Sciences",
]

STUDENT_SUBJECTS = [
    "Mathematics", "Mathematical Literacy", "English Home Language", "Afrikaans",
    "Physical Sciences", "Life Sciences", "Geography", "History",
    "Accounting", "Business Studies", "Economics", "Life Orientation",
    "Information Technology", "Agricultural Sciences", "Engineering Graphics",
]

LEARNER_GRADES = ("9", "10", "11")
STUDENT_GRADES = ("11", "12")
LEARNER_MIN_SUBJECTS = 3
STUDENT_MIN_SUBJECTS = 7
STUDENT_MAX_SUBJECTS = 8

LEARNER_PROMPT = """You are an educational advisor for Mpumalanga learners. Analyze this student's performance:

Grade: {grade}
Marks: {marks}
Average: {average:.1f}%

Based on this performance, recommend whether they should:
1. Continue to Grade 12 (if strong academic performance)
2. Consider TVET college programs (if practical skills would be better)

Provide your response in the following JSON format:
{{
  "pathway": "grade12" or "tvet",
  "reasoning": "2-3 sentences explaining why this path suits them",
  "recommendations": ["specific suggestion 1", "specific suggestion 2", "specific suggestion 3"],
  "next_steps": ["action step 1", "action step 2", "action step 3"]
}}

Consider:
- Academic strengths and weaknesses
- Mpumalanga TVET colleges offer: Engineering, Business Studies, Hospitality, IT, Agriculture
- Grade 12 opens doors to universities and more career options
- TVET provides practical skills and faster entry to workplace
- Be encouraging and supportive in tone"""

STUDENT_PROMPT = """You are a career guidance counselor for South African students in Mpumalanga. Analyze this student's academic profile:

Grade: {grade}
Marks: {marks}
Average: {average:.1f}%

Based on their performance and Mpumalanga's economic needs, provide comprehensive recommendations.

Return your response in this JSON format:
{{
  "courses": [
    {{
      "name": "Course name",
      "institution": "Institution in/near Mpumalanga",
      "type": "university" or "tvet",
      "requirements": "Entry requirements",
      "duration": "Duration"
    }}
  ],
  "careers": [
    {{
      "title": "Career title",
      "description": "Brief description",
      "salary_range": "Estimated range",
      "demand": "high", "medium", or "scarce"
    }}
  ],
  "scarce_skills": ["skill 1", "skill 2", "skill 3", "skill 4"],
  "overall_assessment": "2-3 sentences about their academic profile and potential"
}}

Include:
- 4-6 realistic course options (mix of university and TVET)
- 5-6 career options aligned with their strengths
- Scarce skills relevant to Mpumalanga: Mining, Engineering, Healthcare, Agriculture, IT, Tourism
- Real institutions: University of Mpumalanga, TVET colleges in Mbombela, Witbank, etc.
- Be specific and encouraging"""


def validate_learner_submission(submission: MarksSubmission) -> None:
    """Raise ValueError unless the learner form is complete."""
    if submission.grade not in LEARNER_GRADES:
        raise ValueError("Learner pathway is for Grades 9 to 11")
    if len(submission.filled_marks) < LEARNER_MIN_SUBJECTS:
        raise ValueError(f"Please enter marks for at least {LEARNER_MIN_SUBJECTS} subjects")


def validate_student_submission(submission: MarksSubmission) -> None:
    """Raise ValueError unless the student form has 7 or 8 subjects."""
    if submission.grade not in STUDENT_GRADES:
        raise ValueError("Student pathway is for Grades 11 and 12")
    filled = len(submission.filled_marks)
    if not STUDENT_MIN_SUBJECTS <= filled <= STUDENT_MAX_SUBJECTS:
        raise ValueError(
            f"Enter marks for exactly {STUDENT_MIN_SUBJECTS} or {STUDENT_MAX_SUBJECTS} subjects"
        )


def build_prompt(template: str, submission: MarksSubmission) -> str:
    return template.format(
        grade=submission.grade,
        marks=json.dumps(submission.marks),
        average=submission.average,
    )


async def get_learner_recommendation(
    submission: MarksSubmission,
    gateway: Optional[AIGateway] = None,
) -> LearnerRecommendation:
    """Recommend Grade 12 or TVET for a Grade 9-11 learner."""
    validate_learner_submission(submission)
    gateway = gateway or AIGateway()
    data = await gateway.complete_json([
        {"role": "user", "content": build_prompt(LEARNER_PROMPT, submission)}
    ])
    try:
        recommendation = LearnerRecommendation(**data)
    except ValidationError as e:
        raise UpstreamParseError(f"Learner recommendation had an unexpected shape: {e}")

    logger.info(f"Learner (Grade {submission.grade}, avg {submission.average:.1f}%) -> {recommendation.pathway.value}")
    return recommendation


async def get_student_recommendation(
    submission: MarksSubmission,
    gateway: Optional[AIGateway] = None,
) -> StudentRecommendation:
    """Recommend courses, careers and scarce skills for a Grade 11-12 student."""
    validate_student_submission(submission)
    gateway = gateway or AIGateway()
    data = await gateway.complete_json([
        {"role": "user", "content": build_prompt(STUDENT_PROMPT, submission)}
    ])
    try:
        recommendation = StudentRecommendation(**data)
    except ValidationError as e:
        raise UpstreamParseError(f"Student recommendation had an unexpected shape: {e}")

    logger.info(
        f"Student (Grade {submission.grade}) -> {len(recommendation.courses)} courses, "
        f"{len(recommendation.careers)} careers"
    )
    return recommendation


async def recommend(kind: str, grade: str, marks: Dict[str, str]) -> Dict[str, Any]:
    """Tool wrapper returning status dicts for the web layer.

    Args:
        kind: "learner" or "student"
        grade: Current grade
        marks: Subject -> percentage string
    """
    try:
        submission = MarksSubmission(grade=grade, marks=marks)
        if kind == "learner":
            result = await get_learner_recommendation(submission)
        elif kind == "student":
            result = await get_student_recommendation(submission)
        else:
            raise ValueError(f"Unknown recommendation kind: {kind}")

        return {"status": "success", "recommendation": result.model_dump()}

    except Exception as e:
        logger.error(f"{kind.title()} recommendations error: {e}")
        return {"status": "error", "error": str(e)}
