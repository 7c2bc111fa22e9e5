"""
Tests for continuation-driven list iteration.
"""

from mediawiki_gateway import collect_query, iterate_query
from mediawiki_gateway.helpers.xpath_helpers import continuation_xpath, results_xpath
from tests.conftest import api


def allpages(titles, apfrom=None) -> bytes:
    items = "".join(f'<p ns="0" title="{title}"/>' for title in titles)
    cont = (
        f'<query-continue><allpages apfrom="{apfrom}"/></query-continue>' if apfrom else ""
    )
    return api(f"{cont}<query><allpages>{items}</allpages></query>")


class TestPaths:
    def test_continuation_xpath(self):
        assert continuation_xpath("categorymembers", "cmcontinue") == (
            "//query-continue/categorymembers/@*[name()='cmfrom' or name()='cmcontinue']"
        )

    def test_results_xpath(self):
        assert results_xpath("allpages", "p") == "//query/allpages/p"
        assert results_xpath("allpages", "//p") == "//p"


class TestIterateQuery:
    async def test_follows_continuation_in_order(self, engine, transport):
        transport.queue(allpages(["A", "B"], apfrom="C"))
        transport.queue(allpages(["C", "D"], apfrom="E"))
        transport.queue(allpages(["E"]))

        titles = await collect_query(
            engine, "allpages", "//p", "title", "apfrom", {"aplimit": 2}
        )

        assert titles == ["A", "B", "C", "D", "E"]
        assert len(transport.requests) == 3
        assert "apfrom" not in transport.requests[0].params
        assert transport.requests[1].params["apfrom"] == "C"
        assert transport.requests[2].params["apfrom"] == "E"
        for sent in transport.requests:
            assert sent.method == "GET"
            assert sent.params["list"] == "allpages"
            assert sent.params["aplimit"] == "2"

    async def test_continue_attribute_name(self, engine, transport):
        transport.queue(
            api(
                '<query-continue><categorymembers cmcontinue="page|4a|12"/></query-continue>'
                '<query><categorymembers><cm title="One"/></categorymembers></query>'
            )
        )
        transport.queue(
            api('<query><categorymembers><cm title="Two"/></categorymembers></query>')
        )

        titles = await collect_query(
            engine, "categorymembers", "//cm", "title", "cmcontinue", {"cmtitle": "Category:X"}
        )

        assert titles == ["One", "Two"]
        assert transport.requests[1].params["cmcontinue"] == "page|4a|12"

    async def test_relative_result_path(self, engine, transport):
        transport.queue(allpages(["A"]))

        titles = await collect_query(engine, "allpages", "p", "title", "apfrom", {})

        assert titles == ["A"]

    async def test_yields_elements_without_attr(self, engine, transport):
        transport.queue(
            api('<query><usercontribs><item title="Foo" revid="3"/></usercontribs></query>')
        )

        items = [
            item
            async for item in iterate_query(
                engine, "usercontribs", "//item", None, "uccontinue", {"ucuser": "Bob"}
            )
        ]

        assert len(items) == 1
        assert items[0].get("revid") == "3"

    async def test_caller_params_untouched(self, engine, transport):
        transport.queue(allpages(["A"], apfrom="B"))
        transport.queue(allpages(["B"]))
        params = {"aplimit": 1}

        await collect_query(engine, "allpages", "//p", "title", "apfrom", params)

        assert params == {"aplimit": 1}

    async def test_lazy(self, engine, transport):
        transport.queue(allpages(["A", "B"], apfrom="C"))

        items = iterate_query(engine, "allpages", "//p", "title", "apfrom", {})
        assert await items.__anext__() == "A"
        assert await items.__anext__() == "B"
        await items.aclose()

        assert len(transport.requests) == 1
