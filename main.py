import asyncio
import os

from mediawiki_gateway import GatewayConfig, MediaWikiGateway, WarningPolicy


async def main():
    config = GatewayConfig(warning_policy=WarningPolicy.LOG_AND_CONTINUE, limit=50)
    async with MediaWikiGateway("https://test.wikipedia.org/w/api.php", config) as mw:
        print(f"MediaWiki version: {await mw.version()}")

        # Page content
        text = await mw.get("Main Page")
        print(f"Main Page: {(text or '')[:200]}...")

        # List queries follow continuation until the server is done
        members = await mw.category_members("Category:Help")
        print(f"{len(members)} pages in Category:Help")

        # Lazy iteration stops requesting pages as soon as we stop reading
        async for title in mw.iterate("allpages", "//p", "title", "apfrom", {"aplimit": 10}):
            print(f"- {title}")
            if title >= "B":
                break

        username = os.environ.get("MW_USERNAME")
        if username:
            await mw.login(username, os.environ["MW_PASSWORD"])
            print(f"Logged in, cookies: {sorted(mw.cookies)}")


if __name__ == "__main__":
    asyncio.run(main())
