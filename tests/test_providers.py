import asyncio
import unittest

import httpx

from jarvis_llm.errors import ConfigurationError, ProviderError, ProviderTimeoutError
from jarvis_llm.settings import Settings
from jarvis_llm.types import InvokeOptions, Message, ProviderConfig

from support import USER_HI, RouterHarness, openai_body, request_json, run

SYSTEM_AND_USER = [
    Message(role="system", content="You are Jarvis."),
    Message(role="user", content="Hello"),
]


class ForgeProviderTests(unittest.TestCase):
    def test_request_shape_and_env_key(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json=openai_body()))
        config = ProviderConfig(provider="forge", model="default")

        run(harness.router.invoke(config, SYSTEM_AND_USER))

        request = harness.requests[0]
        self.assertEqual(str(request.url), "https://forge.manus.im/v1/chat/completions")
        self.assertEqual(request.headers["authorization"], "Bearer test-forge-key")
        self.assertEqual(
            request_json(request),
            {
                "model": "gemini-2.5-flash",
                "messages": [
                    {"role": "system", "content": "You are Jarvis."},
                    {"role": "user", "content": "Hello"},
                ],
                "temperature": 0.7,
                "max_tokens": 4096,
            },
        )

    def test_gateway_url_trailing_slash_is_stripped(self) -> None:
        settings = Settings(forge_api_url="https://gateway.local/", forge_api_key="k")
        harness = RouterHarness(
            lambda request: httpx.Response(200, json=openai_body()), settings=settings
        )

        run(harness.router.invoke(ProviderConfig(provider="forge"), USER_HI))

        self.assertEqual(str(harness.requests[0].url), "https://gateway.local/v1/chat/completions")

    def test_missing_env_key_raises_before_network(self) -> None:
        harness = RouterHarness(
            lambda request: httpx.Response(200, json=openai_body()), settings=Settings()
        )

        with self.assertRaises(ConfigurationError):
            run(harness.router.invoke(ProviderConfig(provider="forge"), USER_HI))
        self.assertEqual(harness.requests, [])

    def test_structured_content_is_sent_as_json_text(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json=openai_body()))
        messages = [Message(role="user", content=[{"type": "text", "text": "hi"}])]

        run(harness.router.invoke(ProviderConfig(provider="forge"), messages))

        sent = request_json(harness.requests[0])["messages"][0]["content"]
        self.assertEqual(sent, '[{"type": "text", "text": "hi"}]')


class OllamaProviderTests(unittest.TestCase):
    def test_request_shape_and_normalized_result(self) -> None:
        harness = RouterHarness(
            lambda request: httpx.Response(
                200,
                json={"message": {"content": "Salut"}, "prompt_eval_count": 5, "eval_count": 7},
            )
        )
        config = ProviderConfig(provider="ollama", api_url="http://gpu-box:11434/", temperature=0.2)

        result = run(harness.router.invoke(config, USER_HI, InvokeOptions(max_tokens=256)))

        request = harness.requests[0]
        self.assertEqual(str(request.url), "http://gpu-box:11434/api/chat")
        self.assertNotIn("authorization", request.headers)
        self.assertEqual(
            request_json(request),
            {
                "model": "llama3.2:3b",
                "messages": [{"role": "user", "content": "hi"}],
                "options": {"temperature": 0.2, "num_predict": 256},
                "stream": False,
            },
        )
        self.assertEqual(result.text, "Salut")
        self.assertEqual(result.model, "llama3.2:3b")
        self.assertEqual(result.usage.total_tokens, 12)

    def test_default_url(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json={"message": {}}))

        run(harness.router.invoke(ProviderConfig(provider="ollama"), USER_HI))

        self.assertEqual(str(harness.requests[0].url), "http://localhost:11434/api/chat")


class OpenAIProviderTests(unittest.TestCase):
    def test_fixed_host_and_config_key(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json=openai_body()))
        config = ProviderConfig(
            provider="openai", api_key="sk-test", api_url="http://elsewhere", model="gpt-4o"
        )

        run(harness.router.invoke(config, USER_HI, InvokeOptions(temperature=0.1)))

        request = harness.requests[0]
        self.assertEqual(str(request.url), "https://api.openai.com/v1/chat/completions")
        self.assertEqual(request.headers["authorization"], "Bearer sk-test")
        body = request_json(request)
        self.assertEqual(body["model"], "gpt-4o")
        self.assertEqual(body["temperature"], 0.1)
        self.assertNotIn("stream", body)

    def test_missing_key_raises_before_network(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json=openai_body()))

        with self.assertRaises(ConfigurationError):
            run(harness.router.invoke(ProviderConfig(provider="openai"), USER_HI))
        self.assertEqual(harness.requests, [])


class AnthropicProviderTests(unittest.TestCase):
    def _reply(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "id": "msg_1",
                "content": [{"type": "text", "text": "Bonjour"}],
                "stop_reason": "end_turn",
                "usage": {"input_tokens": 9, "output_tokens": 3},
            },
        )

    def test_system_is_lifted_and_headers_are_custom(self) -> None:
        harness = RouterHarness(self._reply)
        config = ProviderConfig(provider="anthropic", api_key="sk-ant-xyz")
        messages = SYSTEM_AND_USER + [Message(role="assistant", content="Hi!")]

        result = run(harness.router.invoke(config, messages))

        request = harness.requests[0]
        self.assertEqual(str(request.url), "https://api.anthropic.com/v1/messages")
        self.assertEqual(request.headers["x-api-key"], "sk-ant-xyz")
        self.assertEqual(request.headers["anthropic-version"], "2023-06-01")
        self.assertNotIn("authorization", request.headers)
        self.assertEqual(
            request_json(request),
            {
                "model": "claude-3-haiku-20240307",
                "system": "You are Jarvis.",
                "messages": [
                    {"role": "user", "content": "Hello"},
                    {"role": "assistant", "content": "Hi!"},
                ],
                "temperature": 0.7,
                "max_tokens": 4096,
            },
        )
        self.assertEqual(result.text, "Bonjour")
        self.assertEqual(result.id, "msg_1")
        self.assertEqual(result.usage.total_tokens, 12)

    def test_no_system_field_without_system_message(self) -> None:
        harness = RouterHarness(self._reply)

        run(harness.router.invoke(ProviderConfig(provider="anthropic", api_key="k"), USER_HI))

        self.assertNotIn("system", request_json(harness.requests[0]))

    def test_missing_key_raises_before_network(self) -> None:
        harness = RouterHarness(self._reply)

        with self.assertRaises(ConfigurationError):
            run(harness.router.invoke(ProviderConfig(provider="anthropic"), USER_HI))
        self.assertEqual(harness.requests, [])


class N2ProviderTests(unittest.TestCase):
    def test_openai_body_without_auth(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json=openai_body()))

        run(harness.router.invoke(ProviderConfig(provider="n2"), USER_HI))

        request = harness.requests[0]
        self.assertEqual(str(request.url), "http://localhost:8000/v1/chat/completions")
        self.assertNotIn("authorization", request.headers)
        self.assertEqual(request_json(request)["model"], "llama3.1:8b")


class CanonicalResultTests(unittest.TestCase):
    """Every provider yields the same result shape with consistent usage."""

    def _handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/chat":
            return httpx.Response(
                200, json={"message": {"content": ""}, "prompt_eval_count": 1, "eval_count": 2}
            )
        if request.url.path == "/v1/messages":
            return httpx.Response(
                200, json={"content": [{"text": "x"}], "usage": {"input_tokens": 4}}
            )
        return httpx.Response(200, json=openai_body("y", prompt=2, completion=5))

    def test_all_providers(self) -> None:
        harness = RouterHarness(self._handler)
        for provider in ("forge", "ollama", "openai", "anthropic", "n2"):
            with self.subTest(provider=provider):
                config = ProviderConfig(provider=provider, api_key="sk-ant-key")
                result = run(harness.router.invoke(config, USER_HI))

                self.assertIsInstance(result.choices[0].message.content, str)
                usage = result.usage
                self.assertEqual(
                    usage.total_tokens, usage.prompt_tokens + usage.completion_tokens
                )


class TransportErrorTests(unittest.TestCase):
    def test_non_2xx_carries_provider_status_and_body(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(503, text="overloaded"))

        with self.assertRaises(ProviderError) as ctx:
            run(harness.router.invoke(ProviderConfig(provider="n2"), USER_HI))

        self.assertEqual(ctx.exception.provider, "n2")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIn("overloaded", str(ctx.exception))

    def test_httpx_timeout_becomes_provider_timeout(self) -> None:
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        harness = RouterHarness(_timeout)

        with self.assertRaises(ProviderTimeoutError) as ctx:
            run(harness.router.invoke(ProviderConfig(provider="ollama"), USER_HI))
        self.assertEqual(ctx.exception.provider, "ollama")

    def test_slow_response_is_cut_by_timeout_ms(self) -> None:
        async def _slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=openai_body())

        harness = RouterHarness(_slow)
        config = ProviderConfig(provider="n2", timeout_ms=50)

        with self.assertRaises(ProviderTimeoutError):
            run(harness.router.invoke(config, USER_HI))

    def test_connection_error_has_no_status(self) -> None:
        def _refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        harness = RouterHarness(_refused)

        with self.assertRaises(ProviderError) as ctx:
            run(harness.router.invoke(ProviderConfig(provider="ollama"), USER_HI))
        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("connection refused", str(ctx.exception))

    def test_non_json_body(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, text="<html>"))

        with self.assertRaises(ProviderError):
            run(harness.router.invoke(ProviderConfig(provider="n2"), USER_HI))

    def test_unparseable_url_is_a_configuration_error(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json=openai_body()))
        config = ProviderConfig(provider="n2", api_url="http://[::1")

        with self.assertRaises(ConfigurationError) as ctx:
            run(harness.router.invoke(config, USER_HI))

        self.assertIn("invalid API URL", str(ctx.exception))
        self.assertEqual(harness.requests, [])


class ConnectionCheckTests(unittest.TestCase):
    def test_probe_endpoints(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json={}))
        cases = {
            "forge": "https://forge.manus.im/v1/models",
            "ollama": "http://localhost:11434/api/tags",
            "openai": "https://api.openai.com/v1/models",
            "n2": "http://localhost:8000/health",
        }
        for provider, url in cases.items():
            with self.subTest(provider=provider):
                config = ProviderConfig(provider=provider, api_key="sk-test")
                check = run(harness.router.check_connection(config))

                self.assertTrue(check.success)
                self.assertIsNone(check.error)
                self.assertEqual(str(harness.requests[-1].url), url)

    def test_failures_are_reported_not_raised(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(500))

        check = run(harness.router.check_connection(ProviderConfig(provider="n2")))

        self.assertFalse(check.success)
        self.assertIn("500", check.error)
        self.assertGreaterEqual(check.latency_ms, 0)

    def test_unparseable_url_is_reported_not_raised(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200, json={}))

        check = run(harness.router.check_connection(
            ProviderConfig(provider="ollama", api_url="http://[::1")
        ))

        self.assertFalse(check.success)
        self.assertIn("invalid API URL", check.error)
        self.assertEqual(harness.requests, [])

    def test_anthropic_key_format_only(self) -> None:
        harness = RouterHarness(lambda request: httpx.Response(200))

        good = run(harness.router.check_connection(
            ProviderConfig(provider="anthropic", api_key="sk-ant-123")
        ))
        bad = run(harness.router.check_connection(
            ProviderConfig(provider="anthropic", api_key="sk-123")
        ))

        self.assertTrue(good.success)
        self.assertFalse(bad.success)
        self.assertIn("Invalid Anthropic API key format", bad.error)
        self.assertEqual(harness.requests, [])


if __name__ == "__main__":
    unittest.main()
