"""
AI Prompt Constants

Prompt text and the strict JSON schema sent with every extraction request.
"""

EXTRACTION_SYSTEM_PROMPT = (
    "You assist in extracting recipe data from web pages and output in json format."
)

EXTRACTION_PROMPT = (
    "Extract the recipe details from the provided text, including name/title, "
    "description, instructions, ingredients, original_url, featuredImage, and category. "
    "Category is either breakfast, dinner, baking or other. "
    "Ensure all steps and ingredients are fully covered.\n\n{text}"
)

IMAGE_PROMPT_TEMPLATE = (
    "High quality food photography of {title}, plated, natural lighting"
)

# Strict mode requires every property to be listed in 'required'
RECIPE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "instructions": {"type": "array", "items": {"type": "string"}},
        "ingredients": {"type": "array", "items": {"type": "string"}},
        "url": {"type": "string"},
        "image": {"type": "string"},
        "category": {
            "type": "string",
            "enum": ["breakfast", "dinner", "baking", "other"],
        },
        "prepTime": {"type": "integer"},
        "cookTime": {"type": "integer"},
        "totalTime": {"type": "integer"},
        "servings": {"type": "integer"},
    },
    "required": [
        "title", "description", "instructions", "ingredients", "url", "image",
        "category", "prepTime", "cookTime", "totalTime", "servings",
    ],
    "additionalProperties": False,
}

RECIPE_SCHEMA_NAME = "recipe_response"
