PROMPTS = {
    "daily_mission": (
        "Generate one unique, real-world scenario programming question suitable for a daily coding "
        "challenge on {date}. The language is {language}. Difficulty should be Medium. Ensure the test "
        "cases are valid and cover edge cases. The first two test cases must be visible (hidden: false), "
        "the next three must be hidden (hidden: true)."
    ),
    "starter_code": (
        "Given the programming problem \"{question_text}\":\n{description}\n"
        "Generate only the starter code (function signature or boilerplate) for the {language} language. "
        "Do not solve the problem."
    ),
    "judge_code": (
        "You are a code judge. Take the following {language} code and run it against the provided test "
        "cases. For each test case, compare the code's actual standard output with the expected output. "
        "The code's output must be an exact match to the expected output to pass.\n"
        "---CODE---\n{code}\n---TEST CASES---\n{test_cases}\n---END---\n"
        "Return a JSON object matching the provided schema. If the code fails to compile or has a runtime "
        "error, the 'error' field should contain the error message, and the 'test_results' array should be empty."
    ),
    "evaluate_solution": (
        "You are an expert code reviewer. Evaluate this {language} solution for the problem "
        "\"{question_text}\".\n---PROBLEM---\n{description}\n---CODE---\n{code}\n"
        "---TEST CASES---\n{test_cases}\n---END---\n"
        "Run the code against every test case, state its time and space complexity, give short "
        "constructive feedback and, if a clearly better approach exists, describe it."
    ),
    "concept_explanation": (
        "Briefly explain the core idea behind the following programming concept or question in 1-2 "
        "sentences. Keep it simple and direct.\nConcept: \"{concept}\""
    ),
}
