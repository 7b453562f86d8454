from api_compliance.base import MethodMetadata
from api_compliance.registry import (
    REGISTRY,
    MetadataRegistry,
    get_all_root_uris,
    get_methods_metadata,
    get_root_uri,
    owner_class,
)


class Base:
    pass


class Child(Base):
    pass


def _meta(name: str, path: str = "/users") -> MethodMetadata:
    return MethodMetadata(name=name, method="GET", path=path)


class TestMetadataRegistry:
    def test_record_and_read(self):
        registry = MetadataRegistry()
        registry.record_method(Base, _meta("getUsers"))
        assert [m.name for m in registry.own_methods(Base)] == ["getUsers"]
        assert registry.own_methods(Child) == []

    def test_same_name_is_replaced(self):
        registry = MetadataRegistry()
        registry.record_method(Base, _meta("getUsers", "/users"))
        registry.record_method(Base, _meta("getUsers", "/people"))
        methods = registry.own_methods(Base)
        assert len(methods) == 1
        assert methods[0].path == "/people"

    def test_subclass_overrides_by_name(self):
        registry = MetadataRegistry()
        registry.record_method(Base, _meta("getUsers", "/users"))
        registry.record_method(Base, _meta("getUsersById", "/users/{id}"))
        registry.record_method(Child, _meta("getUsers", "/v2/users"))
        methods = {m.name: m.path for m in registry.methods_for(Child)}
        assert methods == {"getUsers": "/v2/users", "getUsersById": "/users/{id}"}

    def test_root_uri_follows_mro(self):
        registry = MetadataRegistry()
        assert registry.root_uri_for(Child) is None
        registry.record_root_uri(Base, "/api")
        assert registry.root_uri_for(Child) == "/api"
        registry.record_root_uri(Child, "/child")
        assert registry.root_uri_for(Child) == "/child"
        assert registry.all_root_uris() == {Base: "/api", Child: "/child"}

    def test_classes_sharing_a_qualname_keep_their_own_root(self):
        def make_client():
            class Client:
                pass

            return Client

        first, second = make_client(), make_client()
        assert (first.__module__, first.__qualname__) == (second.__module__, second.__qualname__)
        registry = MetadataRegistry()
        registry.record_root_uri(first, "/one")
        registry.record_root_uri(second, "/two")
        assert registry.all_root_uris() == {first: "/one", second: "/two"}
        assert registry.root_uri_for(first) == "/one"

    def test_clear(self):
        registry = MetadataRegistry()
        registry.record_root_uri(Base, "/api")
        registry.clear()
        assert registry.all_root_uris() == {}
        assert registry.root_uri_for(Base) is None


class TestModuleFunctions:
    def test_instance_and_class_lookups_agree(self):
        REGISTRY.record_method(Base, _meta("getUsers"))
        REGISTRY.record_root_uri(Base, "/api")
        assert owner_class(Base()) is Base
        assert get_methods_metadata(Base()) == get_methods_metadata(Base)
        assert get_root_uri(Child()) == "/api"
        assert get_all_root_uris() == {Base: "/api"}
