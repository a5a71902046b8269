from aitoonic.models import Agent
from aitoonic.models import Category
from aitoonic.models import Tool
from aitoonic.search import MatchPolicy
from aitoonic.search import group_results
from aitoonic.search import name_matches
from aitoonic.search import result_href
from aitoonic.search import search


def _tools(*names):
    return [Tool(id=str(i), name=name) for i, name in enumerate(names)]


class TestInclusion:
    """Which entities count as hits."""

    def test_empty_and_whitespace_queries_return_nothing(self):
        tools = _tools("Chat")
        assert search("", tools, [], []) == []
        assert search("   ", tools, [], []) == []
        assert search("\t\n", tools, [], []) == []

    def test_hit_needs_a_word_starting_with_query(self):
        tools = _tools("Deep Chat", "Webchat")
        names = [r.name for r in search("chat", tools, [], [])]
        assert names == ["Deep Chat"]

    def test_every_hit_satisfies_match_rule(self):
        tools = _tools("Writer Pro", "Rewrite", "AI Writer", "Copy Writer Studio")
        for result in search("wri", tools, [], []):
            lowered = result.name.lower()
            assert "wri" in lowered
            assert any(word.startswith("wri") for word in lowered.split())

    def test_case_insensitive(self):
        assert [r.name for r in search("CHAT", _tools("chat bot"), [], [])] == ["chat bot"]

    def test_description_alone_is_not_enough_by_default(self):
        tools = [Tool(name="Jasper", description="chat interface")]
        agents = [Agent(name="Helper", capabilities=["Chat support"])]
        assert search("chat", tools, agents, []) == []

    def test_details_policy_matches_description_and_capabilities(self):
        tools = [Tool(name="Jasper", description="has a chat interface")]
        agents = [Agent(name="Helper", capabilities=["Chat support"])]
        results = search("chat", tools, agents, [], policy=MatchPolicy.NAME_OR_DETAILS)
        assert [(r.type, r.name) for r in results] == [("tool", "Jasper"), ("agent", "Helper")]

    def test_missing_fields_do_not_raise(self):
        categories = [Category.model_validate({"name": "Chat", "description": None})]
        agents = [Agent.model_validate({"name": None})]
        results = search("chat", [], agents, categories, policy=MatchPolicy.NAME_OR_DETAILS)
        assert [r.name for r in results] == ["Chat"]

    def test_leading_whitespace_is_kept_in_the_term(self):
        assert search(" chat", _tools("Chat"), [], []) == []

    def test_name_matches(self):
        assert name_matches("Sales Assistant", "ass")
        assert not name_matches("Glass", "ass")
        assert not name_matches("", "a")


class TestRanking:
    """Ordering of hits."""

    def test_exact_then_length(self):
        names = [r.name for r in search("chat", _tools("Chatbot", "Chat", "Chatter"), [], [])]
        assert names == ["Chat", "Chatbot", "Chatter"]

    def test_name_prefix_beats_inner_word(self):
        names = [r.name for r in search("bot", _tools("Super Bot", "Botty"), [], [])]
        assert names == ["Botty", "Super Bot"]

    def test_equal_rank_keeps_collection_order(self):
        tools = [Tool(name="Alpha One")]
        agents = [Agent(name="Alpha Two")]
        categories = [Category(name="Alpha Six")]
        results = search("alpha", tools, agents, categories)
        assert [r.type for r in results] == ["tool", "agent", "category"]

    def test_search_is_pure(self):
        tools = _tools("Chatter", "Chat")
        before = [t.name for t in tools]
        search("chat", tools, [], [])
        assert [t.name for t in tools] == before


class TestCrossCollection:
    def test_sales_hits_both_tool_and_agent(self):
        tools = [Tool(name="Sales Assistant")]
        agents = [Agent(name="Sales Bot")]
        groups = group_results(search("sales", tools, agents, []))
        assert list(groups) == ["tool", "agent"]
        assert groups["tool"][0].name == "Sales Assistant"
        assert groups["agent"][0].name == "Sales Bot"

    def test_result_links(self):
        results = search(
            "sales",
            [Tool(name="Sales  Assistant")],
            [Agent(name="Sales Bot")],
            [Category(name="Sales")],
        )
        hrefs = {r.type: result_href(r) for r in results}
        assert hrefs == {
            "category": "/category/sales",
            "agent": "/ai-agent/sales-bot",
            "tool": "/ai/sales-assistant",
        }
