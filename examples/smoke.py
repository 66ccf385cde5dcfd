import asyncio

from jarvis_llm import LLMRouter, Message, StreamChunk, configure_logging, load_settings


async def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    config = settings.default_config()
    messages = [
        Message(role="system", content="You are Jarvis, a concise home assistant."),
        Message(role="user", content="Give me a one-line status greeting."),
    ]

    async with LLMRouter(settings=settings) as router:
        check = await router.check_connection(config)
        print(f"{config.provider}: reachable={check.success} latency={check.latency_ms}ms")

        def on_chunk(chunk: StreamChunk) -> None:
            if chunk.type == "content":
                print(chunk.content, end="", flush=True)
            elif chunk.type == "done":
                print(f"\n[usage] {chunk.usage.total_tokens} tokens")
            else:
                print(f"\n[error] {chunk.error}")

        await router.stream(config, messages, on_chunk)


if __name__ == "__main__":
    asyncio.run(main())
