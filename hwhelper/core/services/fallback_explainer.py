"""Offline, keyword-based explanations used when the AI model is unavailable.

The templates are generic study guides for the detected kind of problem, not
worked answers. Explanations built here carry ``is_fallback=True``.
"""

import logging
from typing import Dict

from hwhelper.domain.models.common import GradeLevel
from hwhelper.domain.models.explanation import ExplanationStep, ProblemExplanation

logger = logging.getLogger(__name__)

WORD_PROBLEM_KEYWORDS = ("how many", "theater", "audience", "scrapbook", "hockey", "cards", "wheels", "model cars")
GEOMETRY_KEYWORDS = ("symmetry", "figure", "congruent", "triangle", "draw")
EQUATION_MARKERS = ("=", "+", "-", "x", "solve", "equation")

TEMPLATES: Dict[str, dict] = {
    "equation": {
        "problem_type": "Algebraic Equation",
        "grade_level": "high",
        "overview": "Solve the equation by isolating the variable with the same operation on both sides.",
        "steps": [
            # (title, description, hint question, hint)
            ("Identify the equation type",
             "Check whether this is a linear equation of the form ax + b = c, where x is the unknown.",
             "What is the highest power of the variable?",
             "In a linear equation the variable is never raised to a power above 1."),
            ("Collect the variable terms",
             "Move every term containing the variable to one side of the equation.",
             "How can a term move from one side to the other?",
             "Add or subtract the same amount on both sides."),
            ("Collect the constants",
             "Move the plain numbers to the other side.",
             "Which operation undoes the one attached to the constant?",
             "Use the opposite operation: subtract what was added, add what was subtracted."),
            ("Solve for the variable",
             "Divide both sides by the coefficient of the variable.",
             "What is left once only the variable remains on one side?",
             "If ax = b, then x = b / a."),
        ],
        "detailed_explanation": (
            "Linear equations are the base of algebra and graph as straight lines. Doing the same operation to "
            "both sides keeps the two sides equal, so each step simplifies the equation without changing its "
            "solution. The same method carries over to systems of equations and to harder algebra."
        ),
        "solution": "Follow the steps above: collect terms, then divide by the coefficient to find the variable.",
    },
    "word_problem": {
        "problem_type": "Word Problems",
        "grade_level": "elementary",
        "overview": "Turn the story into numbers and pick the arithmetic that matches what is being asked.",
        "steps": [
            ("Understand the problem",
             "Read the problem and find what you are asked to work out and what you are told.",
             "What is the question asking for?",
             "Look for a question mark or words like 'how many'."),
            ("Pick out the important information",
             "Find the numbers and how they are related.",
             "Which numbers do you need?",
             "Underline or circle the key numbers."),
            ("Choose the operation",
             "Decide whether to add, subtract, multiply or divide.",
             "Are you combining, taking away, making equal groups or sharing?",
             "Adding combines, subtracting takes away, multiplying makes groups, dividing shares."),
            ("Set up and solve",
             "Write a number sentence and work it out step by step.",
             "What number sentence matches the story?",
             "Use the numbers you found with the operation you chose."),
        ],
        "detailed_explanation": (
            "Word problems connect math to everyday situations. Solving them means translating words into "
            "operations, which shows you know when and why to use each one, not only how to calculate."
        ),
        "solution": (
            "Example: a theater has 8 rows of 9 seats and 3 seats are empty. "
            "8 × 9 = 72 seats, and 72 - 3 = 69 people are in the audience."
        ),
    },
    "geometry": {
        "problem_type": "Geometry & Symmetry",
        "grade_level": "elementary",
        "overview": "Look for lines of symmetry and compare figures to find which are congruent.",
        "steps": [
            ("Understand symmetry",
             "A line of symmetry splits a shape into two halves that are mirror images.",
             "How can you tell whether a shape is symmetric?",
             "Imagine folding the shape on the line. The halves should match exactly."),
            ("Find the lines of symmetry",
             "For each shape, draw every line that makes two matching halves.",
             "How many lines of symmetry does each shape have?",
             "A square has 4, a rectangle has 2 and a regular hexagon has 6."),
            ("Understand congruence",
             "Figures are congruent when they have the same size and shape, even if turned or flipped.",
             "What has to be the same for two shapes to be congruent?",
             "Matching sides and matching angles must be equal."),
            ("Compare the figures",
             "Check the shape, size and angles of each figure to find the congruent ones.",
             "Could one figure be placed exactly on top of another?",
             "You may turn or flip a shape while comparing."),
        ],
        "detailed_explanation": (
            "Geometry studies shapes and how they relate. Symmetry describes balance in a shape and shows up "
            "in nature and design. Congruence tells us when two shapes are exactly alike. Both ideas prepare "
            "you for later geometry and spatial reasoning."
        ),
        "solution": "The congruent figures are the ones that match exactly after turning or flipping.",
    },
    "elementary_math": {
        "problem_type": "Elementary Mathematics",
        "grade_level": "elementary",
        "overview": "Use careful reading and basic arithmetic to work the problem out one step at a time.",
        "steps": [
            ("Read the problem carefully",
             "Find out what the problem asks and which information it gives you.",
             "What do you need to know to solve it?",
             "Look for numbers and words that point to an operation."),
            ("Identify the operation",
             "Decide whether to add, subtract, multiply or divide.",
             "Which operation helps here?",
             "Multiplying is repeated adding and dividing is sharing equally."),
            ("Work step by step",
             "Solve one small step at a time and write down your work.",
             "Can you split the problem into smaller parts?",
             "Start from what you know and work toward what you need."),
            ("Check your answer",
             "Make sure the answer makes sense for the problem.",
             "Is the answer reasonable?",
             "Work backward from your answer to see if you get the starting numbers."),
        ],
        "detailed_explanation": (
            "Elementary problems build number sense and the habit of analysing a problem before calculating. "
            "These skills are the foundation for more advanced mathematics."
        ),
        "solution": "The answer depends on the numbers in the problem. Check each calculation and that the result makes sense.",
    },
}


def classify_problem(problem_text: str) -> str:
    """Returns the template key matching the problem's keywords."""
    text = problem_text.strip()
    lowered = text.lower()
    if any(keyword in lowered for keyword in WORD_PROBLEM_KEYWORDS):
        return "word_problem"
    if any(keyword in lowered for keyword in GEOMETRY_KEYWORDS):
        return "geometry"
    if any(marker in text for marker in EQUATION_MARKERS):
        return "equation"
    return "elementary_math"


def fallback_explanation(problem_text: str) -> ProblemExplanation:
    kind = classify_problem(problem_text)
    template = TEMPLATES[kind]
    logger.info(f"Using offline '{kind}' explanation template")
    return ProblemExplanation(
        problem_type=template["problem_type"],
        overview=template["overview"],
        steps=[ExplanationStep(title, description, hint_question, hint)
               for title, description, hint_question, hint in template["steps"]],
        detailed_explanation=template["detailed_explanation"],
        solution=template["solution"],
        grade_level=GradeLevel(template["grade_level"]),
        is_fallback=True,
    )
