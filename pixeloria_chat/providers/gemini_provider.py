import httpx
from typing import Any, Dict
from .base import ChatProvider


class GeminiProvider(ChatProvider):
    name = 'gemini'
    display_name = 'Google Gemini'
    description = 'Google Gemini model'
    default_model = 'gemini-1.5-flash'

    def _headers(self, api_key: str) -> Dict[str, str]:
        # Header auth keeps the key out of request URLs (and so out of httpx logs)
        return {'x-goog-api-key': api_key, 'Content-Type': 'application/json'}

    def build_request(self, client, api_key, model, message, system_prompt) -> httpx.Request:
        url = f"{self.api_base}/v1beta/models/{model}:generateContent"
        payload = {
            'systemInstruction': {'parts': [{'text': system_prompt}]},
            'contents': [{'role': 'user', 'parts': [{'text': message}]}],
        }
        return client.build_request('POST', url, headers=self._headers(api_key), json=payload)

    def extract_reply(self, data: Dict[str, Any]) -> str:
        parts = data['candidates'][0]['content']['parts']
        out = []
        for p in parts:
            if 'text' in p:
                out.append(p['text'])
        return '\n'.join(out)

    def build_test_request(self, client, api_key) -> httpx.Request:
        return client.build_request('GET', f"{self.api_base}/v1/models", headers=self._headers(api_key))
