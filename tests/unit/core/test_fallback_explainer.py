import pytest

from hwhelper.core.services.fallback_explainer import TEMPLATES, classify_problem, fallback_explanation


@pytest.mark.parametrize("problem_text, expected", [
    ("How many seats are in the theater?", "word_problem"),
    ("Sam has 12 hockey CARDS and gives away 5.", "word_problem"),
    ("Draw the lines of symmetry for each figure.", "geometry"),
    ("Which triangles are congruent?", "geometry"),
    ("Solve 2x + 3 = 7", "equation"),
    ("12 - 7", "equation"),
    ("Count by twos from 2 to 20.", "elementary_math"),
])
def test_classify_problem(problem_text, expected):
    assert classify_problem(problem_text) == expected


def test_word_problem_keywords_win_over_equation_markers():
    assert classify_problem("How many wheels do 3 + 4 bikes have?") == "word_problem"


def test_fallback_explanation_is_complete_and_marked():
    explanation = fallback_explanation("Solve 2x + 3 = 7")

    assert explanation.is_fallback is True
    assert explanation.problem_type == "Algebraic Equation"
    assert explanation.grade_level == "high"
    assert [step.title for step in explanation.steps] == [
        "Identify the equation type", "Collect the variable terms", "Collect the constants", "Solve for the variable",
    ]
    assert all(step.hint_question and step.hint for step in explanation.steps)
    assert explanation.overview and explanation.detailed_explanation and explanation.solution


@pytest.mark.parametrize("kind", sorted(TEMPLATES))
def test_every_template_has_four_steps(kind):
    template = TEMPLATES[kind]
    assert len(template["steps"]) == 4
    assert template["grade_level"] in ("elementary", "middle", "high", "college")
