"""
AI Service

OpenAI client used for structured recipe extraction (chat completion with a
strict JSON schema) and for generating a representative image when a page
has none.
"""

import logging
from typing import List

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from constants import (
    EXTRACTION_PROMPT,
    EXTRACTION_SYSTEM_PROMPT,
    RECIPE_SCHEMA,
    RECIPE_SCHEMA_NAME,
)

from .errors import AIResponseError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-5-mini'
DEFAULT_IMAGE_MODEL = 'dall-e-3'
MAX_COMPLETION_TOKENS = 16384


class ExtractedRecipe(BaseModel):
    """Recipe fields as returned by the extraction model."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    title: str = Field(default='', description="The title of the recipe")
    description: str = ''
    instructions: List[str] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)
    url: str = ''
    image: str = ''
    category: str = ''
    prep_time: int = Field(default=0, alias='prepTime')
    cook_time: int = Field(default=0, alias='cookTime')
    total_time: int = Field(default=0, alias='totalTime')
    servings: int = 0

    @field_validator('title', 'description', 'url', 'image', 'category', mode='before')
    @classmethod
    def _none_to_empty(cls, value):
        return '' if value is None else value

    @field_validator('instructions', 'ingredients', mode='before')
    @classmethod
    def _coerce_lines(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [line for line in value.splitlines() if line.strip()]
        return [str(item) for item in value if item is not None]

    @field_validator('prep_time', 'cook_time', 'total_time', 'servings', mode='before')
    @classmethod
    def _coerce_int(cls, value):
        if value is None or value == '':
            return 0
        if isinstance(value, float):
            return int(value)
        return value


class AIClient:
    """Thin wrapper over the OpenAI SDK with the timeouts the pipeline needs."""

    def __init__(self, api_key=None, model=DEFAULT_MODEL, image_model=DEFAULT_IMAGE_MODEL,
                 extract_timeout=240, image_timeout=60, client=None):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.image_model = image_model or DEFAULT_IMAGE_MODEL
        self.extract_timeout = extract_timeout
        self.image_timeout = image_timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise AIResponseError("OpenAI API key is not configured")
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def extract_recipe(self, text):
        """
        Extract structured recipe fields from page text.

        Args:
            text: Visible text of the recipe page

        Returns:
            ExtractedRecipe

        Raises:
            AIResponseError: On API failure or an empty/malformed response
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                    {"role": "user", "content": EXTRACTION_PROMPT.format(text=text)},
                ],
                max_completion_tokens=MAX_COMPLETION_TOKENS,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": RECIPE_SCHEMA_NAME,
                        "schema": RECIPE_SCHEMA,
                        "strict": True,
                    },
                },
                timeout=self.extract_timeout,
            )
        except OpenAIError as e:
            raise AIResponseError(f"ai recipe prompt failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise AIResponseError("empty OpenAI chat completion response")

        content = response.choices[0].message.content
        try:
            recipe = ExtractedRecipe.model_validate_json(content)
        except ValidationError as e:
            raise AIResponseError(f"malformed recipe response: {e}") from e

        usage = getattr(response, 'usage', None)
        if usage is not None:
            logger.debug(f"Extraction used {usage.total_tokens} tokens")
        return recipe

    def generate_image(self, prompt):
        """
        Generate an image for the prompt.

        Returns:
            str: Temporary URL of the generated image
        """
        try:
            response = self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                size='1024x1024',
                n=1,
                response_format='url',
                timeout=self.image_timeout,
            )
        except OpenAIError as e:
            raise AIResponseError(f"image generation failed: {e}") from e

        if not response.data or not response.data[0].url:
            raise AIResponseError("image generation returned no URL")
        return response.data[0].url
