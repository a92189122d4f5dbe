import httpx
from typing import Any, Dict
from .base import ChatProvider


class OpenAIProvider(ChatProvider):
    """OpenAI chat completions; Groq and DeepSeek speak the same dialect."""

    name = 'openai'
    display_name = 'OpenAI'
    description = 'OpenAI GPT chat models'
    default_model = 'gpt-4o-mini'
    max_tokens = 500
    temperature = 0.7

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json'
        }

    def build_request(self, client, api_key, model, message, system_prompt) -> httpx.Request:
        payload = {
            'model': model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': message},
            ],
            'max_tokens': self.max_tokens,
            'temperature': self.temperature,
        }
        return client.build_request('POST', f"{self.api_base}/chat/completions",
                                    headers=self._headers(api_key), json=payload)

    def extract_reply(self, data: Dict[str, Any]) -> str:
        return data['choices'][0]['message']['content'] or ''

    def build_test_request(self, client, api_key) -> httpx.Request:
        return client.build_request('GET', f"{self.api_base}/models", headers=self._headers(api_key))


class GroqProvider(OpenAIProvider):
    name = 'groq'
    display_name = 'Groq'
    description = 'Fast inference on open-weight models'
    default_model = 'llama-3.1-8b-instant'


class DeepSeekProvider(OpenAIProvider):
    name = 'deepseek'
    display_name = 'DeepSeek'
    description = 'DeepSeek Chat model'
    default_model = 'deepseek-chat'
