import asyncio
import os
from contextlib import aclosing

import dotenv

from netservice import HttpConfig, LoggingPlugin, NetworkService, Target

dotenv.load_dotenv()

# Any Server-Sent Events endpoint, e.g. https://sse.dev/test
target = Target(base_url=os.getenv("NETSERVICE_SSE_URL", "https://sse.dev/test"))


async def main(max_events: int = 5) -> None:
    async with NetworkService(config=HttpConfig(raise_for_status=True), plugins=[LoggingPlugin()]) as service:
        received = 0
        async with aclosing(service.stream(target)) as events:
            async for event in events:
                print(f"[{event.id}] {event.event or 'message'}: {event.data!r}")
                received += 1
                if received == max_events:
                    break


if __name__ == "__main__":
    asyncio.run(main())
