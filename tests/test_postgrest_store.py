import httpx
import pytest
from postgrest.exceptions import APIError

from recipe_catalog.catalog.repository import RecipeRepository
from recipe_catalog.errors import RemoteError
from recipe_catalog.store import postgrest
from recipe_catalog.store.diagnostics import check_connection
from recipe_catalog.store.postgrest import PostgrestStore


class DummyResponse:
    def __init__(self, data):
        self.data = data


class DummyQuery:
    """Stands in for a Supabase request builder; records every chained call."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def called(self, name):
        return [(args, kwargs) for n, args, kwargs in self.calls if n == name]

    def execute(self):
        self.client.executed.append(self)
        if self.client.error:
            raise self.client.error
        return DummyResponse(self.client.responder(self))


class DummyClient:
    def __init__(self, responder=None, error=None):
        self.responder = responder or (lambda query: [])
        self.error = error
        self.executed = []

    def table(self, name):
        return DummyQuery(self, name)


def _store(client, **kwargs):
    return PostgrestStore("https://demo.supabase.co", "anon-key", client=client, **kwargs)


def _paged(rows):
    """Responder that serves ``rows`` through .range() like PostgREST does."""

    def respond(query):
        [((start, end), _)] = query.called("range")
        return rows[start:end + 1]

    return respond


def test_select_chains_filters():
    client = DummyClient(lambda q: [{"id": "r1"}])

    rows = _store(client).select(
        "recipes",
        eq={"difficulty": "easy", "is_public": True, "description": None},
        ilike_any=(["title", "description"], "pasta"),
        contains={"dietary_restrictions": ["Vegan", "Gluten-Free"]},
        order=("created_at", True),
    )

    [query] = client.executed
    assert rows == [{"id": "r1"}]
    assert query.table == "recipes"
    assert query.called("select") == [(("*",), {})]
    assert query.called("eq") == [(("difficulty", "easy"), {}), (("is_public", "true"), {})]
    assert query.called("is_") == [(("description", "null"), {})]
    assert query.called("or_") == [(('title.ilike."*pasta*",description.ilike."*pasta*"',), {})]
    assert query.called("contains") == [(("dietary_restrictions", ["Vegan", "Gluten-Free"]), {})]
    assert query.called("order") == [(("created_at",), {"desc": True})]
    assert query.called("range") == [((0, 999), {})]


def test_search_text_is_quoted_and_escaped():
    client = DummyClient()

    _store(client).select("recipes", ilike_any=(["title"], 'a,b (50%) "x"'))

    [((value,), _)] = client.executed[0].called("or_")
    assert value == 'title.ilike."*a,b (50\\\\%) \\"x\\"*"'


def test_select_embeds_child_table():
    client = DummyClient()

    _store(client).select("recipes", embed="ingredients")

    assert client.executed[0].called("select") == [(("*", "ingredients(*)"), {})]


def test_select_rejects_unknown_embed():
    with pytest.raises(RemoteError) as exc:
        _store(DummyClient()).select("ingredients", embed="recipes")
    assert exc.value.code == "schema"


def test_select_reads_every_page():
    rows = [{"id": f"i{n}"} for n in range(2500)]
    client = DummyClient(_paged(rows))

    result = _store(client).select("ingredients")

    assert result == rows
    assert [q.called("range")[0][0] for q in client.executed] == [(0, 999), (1000, 1999), (2000, 2999)]


def test_limit_skips_paging():
    client = DummyClient(lambda q: [{"id": "r1"}])

    _store(client).select("recipes", limit=1)

    [query] = client.executed
    assert query.called("limit") == [((1,), {})]
    assert query.called("range") == []


def test_large_listing_keeps_every_ingredient():
    recipes = [
        {
            "id": f"r{n}",
            "title": f"Recipe {n}",
            "instructions": "Cook.",
            "created_by": "u1",
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
            "ingredients": [
                {"id": f"r{n}-{k}", "recipe_id": f"r{n}", "name": f"item {k}", "amount": 1,
                 "unit": "cup", "order_index": 4 - k}
                for k in range(5)
            ],
        }
        for n in range(1250)
    ]
    client = DummyClient(_paged(recipes))
    repo = RecipeRepository(_store(client), lambda: "u1")

    listed = repo.list_recipes()

    assert len(listed) == 1250
    assert all(len(r.ingredients) == 5 for r in listed)
    assert [i.order_index for i in listed[-1].ingredients] == [0, 1, 2, 3, 4]
    assert all(q.table == "recipes" for q in client.executed)


def test_insert_returns_created_rows():
    client = DummyClient(lambda q: [{"id": "i1", "name": "Salt"}])

    rows = _store(client).insert("ingredients", [{"name": "Salt"}])

    assert rows == [{"id": "i1", "name": "Salt"}]
    assert client.executed[0].called("insert") == [(([{"name": "Salt"}],), {})]


def test_insert_nothing_skips_request():
    client = DummyClient()

    assert _store(client).insert("ingredients", []) == []
    assert client.executed == []


def test_delete_by_ids_uses_in_filter():
    client = DummyClient()

    _store(client).delete("ingredients", in_={"id": ["a", "b"]})

    query = client.executed[0]
    assert query.called("delete") == [((), {})]
    assert query.called("in_") == [(("id", ["a", "b"]), {})]


def test_delete_needs_a_filter():
    with pytest.raises(ValueError):
        _store(DummyClient()).delete("recipes")


def test_api_error_becomes_remote_error():
    error = APIError({"code": "42501", "message": "new row violates row-level security policy", "details": None, "hint": None})
    client = DummyClient(error=error)

    with pytest.raises(RemoteError) as exc:
        _store(client).update("recipes", {"title": "x"}, eq={"id": "r1"})

    assert exc.value.code == "42501"
    assert "row-level security" in str(exc.value)


def test_network_failure_becomes_remote_error():
    client = DummyClient(error=httpx.ConnectError("refused"))

    with pytest.raises(RemoteError) as exc:
        _store(client).select("recipes")

    assert exc.value.code == "network"


def test_check_connection_reports_missing_table():
    error = APIError({"code": "PGRST205", "message": "Could not find the table 'public.recipes'", "details": None, "hint": None})

    result = check_connection(_store(DummyClient(error=error)))

    assert result["success"] is False
    assert "not found" in result["error"]


def test_client_is_built_lazily_with_user_token(monkeypatch):
    created = []

    def fake_create_client(url, key, options=None):
        created.append((url, key, options))
        return DummyClient()

    monkeypatch.setattr(postgrest, "create_client", fake_create_client)
    store = PostgrestStore("https://demo.supabase.co", "anon-key", access_token="jwt", timeout=7)
    assert created == []

    store.select("recipes", limit=1)
    store.select("recipes", limit=1)

    [(url, key, options)] = created
    assert (url, key) == ("https://demo.supabase.co", "anon-key")
    assert options.headers["Authorization"] == "Bearer jwt"
    assert options.postgrest_client_timeout == 7
