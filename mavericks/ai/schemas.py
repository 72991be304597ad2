"""Gemini response schemas, one per content kind"""

_TEST_CASE = {
    "type": "OBJECT",
    "properties": {
        "input": {"type": "STRING", "description": "The input for the test case, formatted as a string."},
        "expected_output": {"type": "STRING", "description": "The expected standard output for the given input."},
        "hidden": {"type": "BOOLEAN", "description": "Whether this test case is hidden from the user."},
    },
    "required": ["input", "expected_output", "hidden"],
}

_TEST_RESULT = {
    "type": "OBJECT",
    "properties": {
        "passed": {"type": "BOOLEAN"},
        "input": {"type": "STRING"},
        "output": {"type": "STRING"},
        "expected": {"type": "STRING"},
    },
    "required": ["passed", "input", "output", "expected"],
}

PROGRAMMING_QUESTION = {
    "type": "OBJECT",
    "properties": {
        "question_text": {"type": "STRING", "description": "A concise and clear title for the programming problem."},
        "description": {
            "type": "STRING",
            "description": "A detailed, real-world scenario-based problem description with input and output format.",
        },
        "constraints": {"type": "ARRAY", "items": {"type": "STRING"}},
        "starter_code": {"type": "STRING", "description": "Boilerplate code or a function signature."},
        "test_cases": {"type": "ARRAY", "items": _TEST_CASE},
    },
    "required": ["question_text", "description", "constraints", "starter_code", "test_cases"],
}

STARTER_CODE = {
    "type": "OBJECT",
    "properties": {
        "starter_code": {"type": "STRING", "description": "Function signature or boilerplate only."},
    },
    "required": ["starter_code"],
}

CODE_EXECUTION_RESULT = {
    "type": "OBJECT",
    "properties": {
        "error": {"type": "STRING", "description": "Compilation or runtime error, empty when the code ran."},
        "test_results": {"type": "ARRAY", "items": _TEST_RESULT},
    },
    "required": ["test_results"],
}

SOLUTION_EVALUATION = {
    "type": "OBJECT",
    "properties": {
        "test_results": {"type": "ARRAY", "items": _TEST_RESULT},
        "error": {"type": "STRING"},
        "time_complexity": {"type": "STRING"},
        "space_complexity": {"type": "STRING"},
        "feedback": {"type": "STRING"},
        "better_approach_suggestion": {"type": "STRING"},
    },
    "required": ["test_results", "time_complexity", "space_complexity", "feedback"],
}

CONCEPT_EXPLANATION = {
    "type": "OBJECT",
    "properties": {"explanation": {"type": "STRING"}},
    "required": ["explanation"],
}

SCHEMAS = {
    "daily_mission": PROGRAMMING_QUESTION,
    "starter_code": STARTER_CODE,
    "judge_code": CODE_EXECUTION_RESULT,
    "evaluate_solution": SOLUTION_EVALUATION,
    "concept_explanation": CONCEPT_EXPLANATION,
}
