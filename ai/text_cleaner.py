"""
AI Text Cleaner

Uses Ollama or OpenAI to transform one extracted column according to a
free-text instruction ("remove currency symbols", "extract the domain", ...).
The response must be a JSON array with exactly one string per input value.
"""

import json
import time
import logging
import re
from typing import Any, List, Optional

try:
    from openai import OpenAI
    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False

try:
    import ollama
    OLLAMA_AVAILABLE = True
except ImportError:
    OLLAMA_AVAILABLE = False

from config import config

logger = logging.getLogger(__name__)


class TransformError(Exception):
    """The model failed or answered with something other than a same-length string array"""


class AITextCleaner:
    """AI-powered column transformer"""

    def __init__(self, model_type: Optional[str] = None):
        self.model_type = model_type or config.AI_MODEL
        self._setup_clients()

    def _setup_clients(self):
        """Setup AI model clients based on configuration"""
        if self.model_type == 'openai' and OPENAI_AVAILABLE:
            if not config.OPENAI_API_KEY:
                raise ValueError("OpenAI API key is required but not provided")
            self.openai_client = OpenAI(api_key=config.OPENAI_API_KEY)
            self.openai_model = config.OPENAI_MODEL
            logger.info(f"Initialized OpenAI client with model: {self.openai_model}")

        elif self.model_type == 'ollama' and OLLAMA_AVAILABLE:
            self.ollama_client = ollama.Client(host=config.OLLAMA_BASE_URL)
            self.ollama_model = config.OLLAMA_MODEL
            logger.info(f"Initialized Ollama client with model: {self.ollama_model}")

        else:
            available_models = []
            if OPENAI_AVAILABLE:
                available_models.append('openai')
            if OLLAMA_AVAILABLE:
                available_models.append('ollama')

            raise ValueError(
                f"AI model '{self.model_type}' not available. "
                f"Available models: {available_models}"
            )

    @property
    def model_used(self) -> str:
        if self.model_type == 'openai':
            return f"openai-{self.openai_model}"
        return f"ollama-{self.ollama_model}"

    def transform(self, values: List[str], instruction: str) -> List[str]:
        """
        Clean a column of values

        Args:
            values: Raw column values in row order
            instruction: What to do with each value

        Returns:
            Cleaned values, same length and order as ``values``

        Raises:
            TransformError: when the model call fails or the answer is malformed
        """
        if not values:
            return []

        start_time = time.time()
        prompt = self._build_cleaning_prompt(values, instruction)

        try:
            content = self._complete(
                "You are a data cleaning assistant. Always respond with a JSON array of strings only.",
                prompt,
                json_mode=True
            )
        except Exception as e:
            logger.error(f"AI cleaning request failed: {e}")
            raise TransformError(str(e)) from e

        cleaned = self._parse_ai_response(content)
        if cleaned is None:
            raise TransformError("Invalid response format from AI")
        if len(cleaned) != len(values):
            raise TransformError(f"AI returned {len(cleaned)} values for {len(values)} inputs")

        logger.info(f"AI cleaned {len(values)} values with {self.model_used} "
                    f"in {time.time() - start_time:.2f}s")
        return cleaned

    def suggest_field_name(self, sample_text: str) -> str:
        """Short snake_case column name for a sample value, "field" when the model is unavailable"""
        prompt = (
            f'Suggest a short, concise column header name (snake_case) for this data sample: '
            f'"{sample_text}". Return ONLY the name.'
        )
        try:
            content = self._complete("You name spreadsheet columns.", prompt, json_mode=False)
        except Exception as e:
            logger.warning(f"Field name suggestion failed: {e}")
            return "field"

        name = re.sub(r'[^a-z0-9_]', '', content.strip().strip('"\'`').lower().replace(' ', '_'))
        return name or "unknown_field"

    def _complete(self, system: str, prompt: str, json_mode: bool) -> str:
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt}
        ]

        if self.model_type == 'openai':
            response = self.openai_client.chat.completions.create(
                model=self.openai_model,
                messages=messages,
                temperature=config.AI_TEMPERATURE
            )
            return response.choices[0].message.content or ''

        options = {'temperature': config.AI_TEMPERATURE, 'top_p': 0.9}
        if json_mode:
            response = self.ollama_client.chat(model=self.ollama_model, messages=messages,
                                               format='json', options=options)
        else:
            response = self.ollama_client.chat(model=self.ollama_model, messages=messages,
                                               options=options)
        return response['message']['content']

    def _build_cleaning_prompt(self, values: List[str], instruction: str) -> str:
        return f"""
Task: {instruction}

Input Data:
{json.dumps(values, ensure_ascii=False)}

Requirements:
1. Process each item in the input array.
2. Return an array of exactly the same length ({len(values)} items), in the same order.
3. If a value cannot be cleaned, keep the original or return an empty string based on context.
4. Do not add any explanations, just the JSON array.
"""

    def _parse_ai_response(self, content: str) -> Optional[List[str]]:
        """Parse AI response and extract the JSON array"""
        try:
            parsed = json.loads(content.strip())
        except json.JSONDecodeError:
            array_match = re.search(r'\[.*\]', content, re.DOTALL)
            if not array_match:
                logger.error("AI response contains no JSON array")
                logger.debug(f"AI response content: {content[:500]}...")
                return None
            try:
                parsed = json.loads(array_match.group())
            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse AI response as JSON: {e}")
                return None

        # JSON mode sometimes wraps the array in an object
        if isinstance(parsed, dict):
            parsed = next((value for value in parsed.values() if isinstance(value, list)), None)

        if not isinstance(parsed, list):
            return None
        return [self._to_text(item) for item in parsed]

    @staticmethod
    def _to_text(item: Any) -> str:
        if item is None:
            return ''
        return item if isinstance(item, str) else str(item)
