"""Tests for the Store registry."""

from itertools import count

import pytest

from fixturedb import (
    CollectionView,
    CustomIdentityManager,
    InternalCollectionView,
    SequentialIdentityManager,
    Store,
    StoreConfig,
    UnknownCollectionError,
)
from fixturedb.observability import get_metrics


class TestConstruction:
    """Tests for Store construction and load_data."""
    
    def test_empty_store(self):
        """A new store has no collections."""
        store = Store()
        assert store.collection_names() == []
        assert store.dump() == {}
    
    def test_initial_data_loaded(self):
        """Initial data creates one collection per key."""
        store = Store({"users": [{"name": "Zelda"}], "posts": []})
        assert store.collection_names() == ["users", "posts"]
        assert store["users"] == [{"id": 0, "name": "Zelda"}]
    
    def test_load_data_copies_input(self):
        """Mutating the loaded data afterwards changes nothing."""
        data = {"users": [{"id": 1, "name": "Zelda", "tags": ["royal"]}]}
        store = Store(data)
        
        data["users"][0]["tags"].append("mutated")
        data["users"].append({"id": 2})
        
        assert store.dump() == {"users": [{"id": 1, "name": "Zelda", "tags": ["royal"]}]}
    
    def test_load_data_feeds_existing_collection(self, store):
        """Loading into an existing name inserts into it."""
        store.load_data({"users": [{"name": "Ganon"}]})
        assert [u["name"] for u in store["users"]] == ["Zelda", "Link", "Ganon"]


class TestDump:
    """Tests for Store.dump."""
    
    def test_round_trip(self):
        """dump() returns what was loaded."""
        data = {
            "users": [{"id": 1, "name": "Zelda"}, {"id": 2, "name": "Link"}],
            "posts": [{"id": "p1", "title": "Hyrule news", "author_id": 1}],
        }
        assert Store(data).dump() == data
    
    def test_round_trip_assigns_missing_ids(self):
        """Records without ids come back with assigned ids."""
        store = Store({"users": [{"name": "Zelda"}, {"id": 7, "name": "Link"}]})
        assert store.dump() == {
            "users": [{"id": 0, "name": "Zelda"}, {"id": 7, "name": "Link"}],
        }
    
    def test_dump_is_snapshot(self, store):
        """A dump does not change when the store does, and vice versa."""
        snapshot = store.dump()
        store.collection("users").insert({"name": "Ganon"})
        snapshot["users"][0]["name"] = "Changed"
        
        assert len(snapshot["users"]) == 2
        assert store.collection("users").find(0)["name"] == "Zelda"
    
    def test_dump_counted(self, store):
        """Dumps are counted."""
        store.dump()
        assert get_metrics().dumps_taken.value == 1


class TestCreateCollection:
    """Tests for collection lifecycle."""
    
    def test_create_returns_store(self):
        """create_collection chains."""
        store = Store()
        assert store.create_collection("users").create_collection("posts") is store
        assert "users" in store and "posts" in store
    
    def test_create_is_idempotent(self, store):
        """Re-creating a collection keeps its records."""
        store.create_collection("users")
        assert len(store["users"]) == 2
    
    def test_create_existing_with_data_inserts(self, store):
        """Re-creating with seed data inserts into the existing collection."""
        store.create_collection("users", [{"name": "Ganon"}])
        assert store["users"].find_by({"name": "Ganon"})["id"] == 2
    
    def test_create_collections(self):
        """Several empty collections can be created at once."""
        store = Store()
        store.create_collections("users", "posts", "comments")
        assert store.collection_names() == ["users", "posts", "comments"]
        assert all(len(store[name]) == 0 for name in store.collection_names())
    
    def test_name_kept_as_given(self):
        """Names are not normalized."""
        store = Store()
        store.create_collection("blogPosts")
        assert store.collection_names() == ["blogPosts"]
        assert store.collection("blogPosts").name == "blogPosts"
    
    def test_collections_created_metric(self):
        """Only new collections are counted."""
        store = Store()
        store.create_collections("users", "users", "posts")
        assert get_metrics().collections_created.value == 2


class TestViews:
    """Tests for the public and internal collection views."""
    
    def test_public_view_is_list_of_copies(self, store):
        """The public view is a list snapshot."""
        view = store.collection("users")
        assert isinstance(view, CollectionView)
        assert isinstance(view, list)
        assert [u["name"] for u in view] == ["Zelda", "Link"]
    
    def test_mutating_view_does_not_change_store(self, store):
        """Changing the snapshot list or its records leaves the store intact."""
        view = store.collection("users")
        view[0]["name"] = "Changed"
        view.append({"id": 99})
        del view[1]
        
        assert store.collection("users") == [
            {"id": 0, "name": "Zelda", "age": 17},
            {"id": 1, "name": "Link", "age": 17},
        ]
    
    def test_view_methods_change_store(self, store):
        """Methods on a view write through to the collection."""
        view = store.collection("users")
        view.insert({"name": "Ganon"})
        view.update(0, {"age": 18})
        view.remove(1)
        
        assert [u["name"] for u in store["users"]] == ["Zelda", "Ganon"]
        assert store["users"].find(0)["age"] == 18
        # The snapshot taken before the calls is unchanged
        assert len(view) == 2 and view[1]["name"] == "Link"
    
    def test_view_exposes_all_methods(self, store):
        """Both views carry every collection method."""
        methods = ["insert", "find", "find_by", "where", "update", "remove", "first_or_create"]
        for view in (store.collection("users"), store.collection_internal("users")):
            for method in methods:
                assert callable(getattr(view, method))
    
    def test_view_first_or_create(self, store):
        """first_or_create through a view is idempotent."""
        posts = store.collection("posts")
        first = posts.first_or_create({"title": "Hi"}, {"body": "..."})
        second = store.collection("posts").first_or_create({"title": "Hi"}, {"body": "..."})
        assert first == second
        assert len(store["posts"]) == 1
    
    def test_view_remove_all(self, store):
        """remove() with no argument through a view empties the collection."""
        store.collection("users").remove()
        assert store["users"] == []
        assert store["users"].insert({"name": "Navi"})["id"] == 0
    
    def test_internal_view_has_no_records(self, store):
        """The internal view does not materialize records."""
        internal = store.collection_internal("users")
        assert isinstance(internal, InternalCollectionView)
        assert not isinstance(internal, list)
        assert len(internal) == 2
        assert internal.find(1)["name"] == "Link"
    
    def test_internal_view_writes_through(self, store):
        """Internal view methods mutate the real collection."""
        store.collection_internal("posts").insert({"title": "Hi"})
        assert store["posts"] == [{"id": 0, "title": "Hi"}]
    
    def test_unknown_collection_raises(self, store):
        """Unknown names raise by default."""
        with pytest.raises(UnknownCollectionError) as exc_info:
            store.collection("comments")
        assert exc_info.value.name == "comments"
        with pytest.raises(KeyError):
            store["comments"]
        with pytest.raises(UnknownCollectionError):
            store.collection_internal("comments")
    
    def test_unknown_collection_created_lazily(self):
        """With lazy creation on, unknown names become empty collections."""
        store = Store(config=StoreConfig(create_missing_collections=True))
        assert store.collection("comments") == []
        assert "comments" in store


class TestEmptyData:
    """Tests for Store.empty_data."""
    
    def test_empties_every_collection(self, store):
        """All records go, collections stay."""
        store.collection("posts").insert({"title": "Hi"})
        store.empty_data()
        
        assert store.dump() == {"users": [], "posts": []}
    
    def test_resets_identity(self, store):
        """Ids restart at 0 after emptying."""
        store.empty_data()
        assert store.collection("users").insert({"name": "Zelda"})["id"] == 0


class TestIdentityManagers:
    """Tests for identity manager resolution."""
    
    def test_default_is_sequential(self):
        """Without registrations the built-in manager is used."""
        assert Store().identity_manager_for("users") is SequentialIdentityManager
    
    def test_resolution_priority(self):
        """Per-model beats application beats default."""
        def user_manager():
            return CustomIdentityManager(lambda: "u")
        
        def app_manager():
            return CustomIdentityManager(lambda: "a")
        
        store = Store(identity_managers={"user": user_manager})
        assert store.identity_manager_for("users") is user_manager
        assert store.identity_manager_for("posts") is SequentialIdentityManager
        
        store.register_identity_managers({"user": user_manager, "application": app_manager})
        assert store.identity_manager_for("users") is user_manager
        assert store.identity_manager_for("posts") is app_manager
        
        store.register_identity_managers({"application": app_manager})
        assert store.identity_manager_for("users") is app_manager
    
    def test_register_replaces_mapping(self):
        """Registering drops previous entries."""
        store = Store(identity_managers={"user": SequentialIdentityManager})
        store.register_identity_managers(None)
        assert store.identity_manager_for("users") is SequentialIdentityManager
        assert store._identity_managers == {}
    
    def test_register_rejects_non_callables(self):
        """Registered managers must be classes or factories."""
        with pytest.raises(TypeError):
            Store(identity_managers={"user": SequentialIdentityManager()})
    
    def test_irregular_plural_resolution(self):
        """Collection names are singularized before lookup."""
        factory = CustomIdentityManager.factory(lambda: "p")
        store = Store(identity_managers={"person": factory})
        assert store.identity_manager_for("people") is factory
    
    def test_collection_uses_resolved_manager(self):
        """New collections draw ids from the resolved manager."""
        counter = count(100)
        store = Store(
            {"users": [{"name": "Zelda"}], "posts": [{"title": "Hi"}]},
            identity_managers={"user": CustomIdentityManager.factory(lambda: f"u{next(counter)}")},
        )
        assert store["users"].find_by({"name": "Zelda"})["id"] == "u100"
        assert store["posts"].find_by({"title": "Hi"})["id"] == 0
    
    def test_each_collection_gets_fresh_manager(self):
        """Ids do not leak between collections sharing a policy."""
        store = Store()
        store.create_collections("users", "posts")
        assert store["users"].insert({})["id"] == 0
        assert store["posts"].insert({})["id"] == 0
    
    def test_application_manager_used_for_new_collections(self):
        """The application-wide factory assigns ids in every collection."""
        store = Store(identity_managers={"application": CustomIdentityManager.factory(lambda: "u1")})
        store.create_collections("users", "posts")
        assert store["users"].insert({"name": "Zelda"})["id"] == "u1"
        assert store["posts"].insert({"title": "Hi"})["id"] == "u1"
    
    def test_manager_without_contains(self, minimal_manager_cls):
        """Managers implementing only get/set/reset can be registered."""
        store = Store(identity_managers={"application": minimal_manager_cls})
        store.create_collection("users")
        
        assert store["users"].insert({"id": 50})["id"] == 50
        assert store["users"].insert({"name": "Zelda"})["id"] == 1001
        store.empty_data()
        assert store["users"].insert({"id": 50})["id"] == 50
