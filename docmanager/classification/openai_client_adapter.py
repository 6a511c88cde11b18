import httpx
import openai

from docmanager.classification.client_base import BaseChatClient
from docmanager.classification.exceptions import ClassifierError, ClassifierNetworkError


class OpenAIClientAdapter(BaseChatClient):
    """Chat client for any OpenAI-compatible API, constrained to a JSON schema."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "classification_result",
                        "strict": True,
                        "schema": json_schema,
                    },
                },
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ClassifierNetworkError(f"Classifier provider unreachable: {exc}") from exc
        except openai.APIError as exc:
            raise ClassifierNetworkError(
                f"Classifier provider rejected the request: {exc}"
            ) from exc

        if not response.choices:
            raise ClassifierError("Classifier provider returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise ClassifierError("Classifier provider returned an empty message")
        return content
