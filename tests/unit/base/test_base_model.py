"""Tests for model specs, composition and model instances."""

import pytest

from modelkit.base.events import ModelEvents
from modelkit.base.fields import FieldFactory, IntField, StringField, field_factory
from modelkit.base.model import Casing, ModelInstance, ModelSpec, model_factory
from modelkit.base.options import MISSING
from modelkit.base.registry import ModelRegistry, default_provider
from modelkit.exceptions import ConfigurationError, DuplicateModelError

Field: FieldFactory[str] = field_factory(str)


@pytest.fixture
def test_model() -> ModelSpec:
    """Model with a visually hidden id and a field named apart from its key."""
    return model_factory(
        fields={
            "id": Field(display_name="ID", visually_hidden=True),
            "name": Field(display_name="Name", name="no-name"),
        },
        meta={
            "name": "test-model",
            "plural_name": "test-models",
            "display_field": "name",
            "pagination": {"limit": 10},
        },
    )


class TestModelInitialization:
    """Test model_factory and ModelSpec construction."""

    def test_model_initialized(self) -> None:
        """Test fields and meta are kept."""
        model = model_factory({"id": Field(), "name": Field()}, {"name": "init-model"})
        assert set(model.fields) == {"id", "name"}
        assert model.name == "init-model"
        assert model.get_field_names() == ["id", "name"]

    def test_registered_in_default_registry(self, test_model: ModelSpec) -> None:
        """Test construction registers the model."""
        assert default_provider.default.get_model("test-model") is test_model
        assert test_model.registry is default_provider.default

    def test_fields_named_after_keys(self, test_model: ModelSpec) -> None:
        """Test fields get their mapping key as name unless already named."""
        assert test_model.fields["id"].get_name() == "id"
        assert test_model.fields["name"].get_name() == "no-name"

    def test_fields_attached_to_model(self, test_model: ModelSpec) -> None:
        """Test every field points back at the model."""
        assert all(field.model is test_model for field in test_model.fields.values())

    def test_name_required_for_concrete_models(self) -> None:
        """Test a concrete model without a name is rejected."""
        with pytest.raises(ConfigurationError):
            model_factory({"id": Field()}, {})

    def test_non_field_rejected(self) -> None:
        """Test field values must be field specs."""
        with pytest.raises(ConfigurationError):
            model_factory({"id": str}, {"name": "bad"})  # type: ignore[dict-item]

    def test_named_registry(self) -> None:
        """Test models can target a named registry."""
        model = model_factory({"id": Field()}, {"name": "scoped"}, registry="secondary")
        assert model.registry is default_provider.get_instance("secondary")
        assert "scoped" not in default_provider.default

    def test_registry_instance(self) -> None:
        """Test models accept a registry object."""
        registry = ModelRegistry("standalone")
        model = model_factory({"id": Field()}, {"name": "scoped"}, registry=registry)
        assert registry.get_model("scoped") is model

    def test_duplicate_in_strict_registry(self) -> None:
        """Test name clashes fail in registries that disallow overwrite."""
        registry = ModelRegistry("strict")
        model_factory({"id": Field()}, {"name": "taken"}, registry=registry)
        with pytest.raises(DuplicateModelError):
            model_factory({"id": Field()}, {"name": "taken"}, registry=registry)

    def test_failed_registration_keeps_field_owner(self) -> None:
        """Test a rejected duplicate leaves shared fields pointing at the live model."""
        registry = ModelRegistry("strict")
        shared = Field()
        first = model_factory({"a": shared}, {"name": "owner"}, registry=registry)
        with pytest.raises(DuplicateModelError):
            model_factory({"a": shared}, {"name": "owner"}, registry=registry)
        assert registry.get_model("owner") is first
        assert first.fields["a"] is shared
        assert shared.model is first

    def test_failed_registration_of_fresh_field(self) -> None:
        """Test a field only used by a rejected model is left unattached."""
        registry = ModelRegistry("strict")
        model_factory({"id": Field()}, {"name": "taken"}, registry=registry)
        fresh = Field()
        with pytest.raises(DuplicateModelError):
            model_factory({"id": fresh}, {"name": "taken"}, registry=registry)
        assert fresh.model is None

    @pytest.mark.parametrize("field_name", ["model", "fields", "values", "validate", "pk", "save", "to_dict"])
    def test_reserved_field_names_rejected(self, field_name: str) -> None:
        """Test names shadowed by instance attributes are refused."""
        with pytest.raises(ConfigurationError, match="clashes"):
            model_factory({field_name: Field()}, {"name": "reserved"})
        assert "reserved" not in default_provider.default


class TestAbstractModels:
    """Test abstract models."""

    def test_no_manager(self) -> None:
        """Test abstract models get no objects manager."""
        model = model_factory({"id": Field()}, {"name": "base", "abstract": True})
        assert model.is_abstract
        assert not hasattr(model, "objects")

    def test_concrete_has_manager(self, test_model: ModelSpec) -> None:
        """Test concrete models get a manager bound to them."""
        assert test_model.objects.model is test_model

    def test_unnamed_abstract_not_registered(self) -> None:
        """Test abstract models without a name stay out of the registry."""
        model_factory({"id": Field()}, {"abstract": True})
        assert len(default_provider.default) == 0

    def test_extend_abstract_into_concrete(self) -> None:
        """Test a concrete model can be derived from an abstract one."""
        base = model_factory({"id": Field()}, {"abstract": True})
        concrete = base.extend({"title": Field()}, {"name": "post", "abstract": False})
        assert not concrete.is_abstract
        assert concrete.objects.model is concrete

    @pytest.mark.asyncio
    async def test_instance_save_requires_manager(self) -> None:
        """Test persisting an abstract model instance fails."""
        model = model_factory({"id": Field()}, {"abstract": True})
        with pytest.raises(ConfigurationError):
            await model({"id": "1"}).save()


class TestModelComposition:
    """Test create, extend, merge and omit."""

    def test_extend(self, test_model: ModelSpec) -> None:
        """Test extend adds fields and merges meta."""
        extended = test_model.extend(
            fields={"username": Field()},
            meta={"name": "extended-model", "plural_name": "extended-models"},
        )
        assert "username" in extended.fields
        assert extended.meta["name"] == "extended-model"
        assert extended.meta["display_field"] == "name"
        assert extended.meta["pagination"]["limit"] == 10
        assert default_provider.default.get_model("extended-model") is extended

    def test_extend_is_non_destructive(self, test_model: ModelSpec) -> None:
        """Test the source model is unchanged by extend."""
        fields_before = dict(test_model.fields)
        meta_before = dict(test_model.meta)
        test_model.extend({"username": Field(), "id": IntField()}, {"name": "other"})
        assert test_model.fields == fields_before
        assert test_model.meta == meta_before
        assert default_provider.default.get_model("test-model") is test_model

    def test_extend_replaces_same_named_fields(self, test_model: ModelSpec) -> None:
        """Test new fields fully replace existing ones."""
        replacement = IntField()
        extended = test_model.extend({"id": replacement}, {"name": "int-id"})
        assert extended.fields["id"] is replacement
        assert extended.fields["name"] is test_model.fields["name"]

    def test_merge(self, test_model: ModelSpec) -> None:
        """Test merge folds models in order with meta applied last."""
        extended = test_model.extend(
            fields={"username": Field()},
            meta={"name": "extended-model", "plural_name": "extended-models"},
        )
        merged = test_model.merge([extended], {"name": "merged-model", "plural_name": "merged-models"})
        assert "username" in merged.fields
        assert merged.meta["name"] == "merged-model"
        assert merged.meta["plural_name"] == "merged-models"

    def test_merge_precedence(self) -> None:
        """Test later models win on field and meta collisions."""
        base = model_factory({"x": Field()}, {"name": "base", "description": "base"})
        first_x, second_x = Field(), Field()
        first = model_factory({"x": first_x, "a": Field()}, {"name": "first", "description": "first"})
        second = model_factory({"x": second_x, "b": Field()}, {"name": "second"})
        merged = base.merge([first, second], {"name": "merged"})
        assert merged.fields["x"] is second_x
        assert set(merged.fields) == {"x", "a", "b"}
        assert merged.meta["description"] == "first"
        assert merged.name == "merged"

    def test_omit(self, test_model: ModelSpec) -> None:
        """Test omit drops fields and inherits meta."""
        omitted = test_model.omit(["name"], {"name": "omitted-model", "plural_name": "omitted-models"})
        assert "name" not in omitted.fields
        assert omitted.meta["name"] == "omitted-model"
        assert omitted.meta["display_field"] == "name"
        assert omitted.meta["pagination"]["limit"] == 10
        assert "name" in test_model.fields

    def test_omit_unknown_names_ignored(self, test_model: ModelSpec) -> None:
        """Test omitting names that are not fields is a no-op for them."""
        omitted = test_model.omit(["missing"], {"name": "same-fields"})
        assert omitted.get_field_names() == test_model.get_field_names()

    def test_create(self, test_model: ModelSpec) -> None:
        """Test create builds an unrelated model."""
        created = test_model.create(
            fields={"id": Field(), "name": Field()},
            meta={"name": "new-model", "plural_name": "new-models"},
        )
        assert "name" in created.fields
        assert created.meta == {"name": "new-model", "plural_name": "new-models"}

    def test_composition_stays_in_source_registry(self) -> None:
        """Test derived models register where the source did."""
        source = model_factory({"id": Field()}, {"name": "source"}, registry="tenant")
        extended = source.extend(meta={"name": "extended"})
        omitted = source.omit([], {"name": "omitted"})
        merged = source.merge([], {"name": "merged"})
        created = source.create({"id": Field()}, {"name": "created"})
        tenant = default_provider.get_instance("tenant")
        for model in (extended, omitted, merged, created):
            assert model.registry is tenant
            assert tenant.get_model(model.name) is model
        assert "extended" not in default_provider.default

    def test_shared_field_tracks_latest_model(self, test_model: ModelSpec) -> None:
        """Test composition re-attaches shared fields to the derived model."""
        extended = test_model.extend(meta={"name": "extended-model"})
        assert test_model.fields["id"].model is extended
        assert default_provider.default.find_field_owners(test_model.fields["id"]) == [
            "test-model",
            "extended-model",
        ]


class TestModelHelpers:
    """Test field helper methods."""

    def test_get_field(self, test_model: ModelSpec) -> None:
        """Test field lookup by key."""
        assert test_model.get_field("id") is test_model.fields["id"]
        assert test_model.get_field("nope") is None

    def test_is_valid_field(self, test_model: ModelSpec) -> None:
        """Test ownership check."""
        assert test_model.is_valid_field(test_model.fields["id"])
        assert not test_model.is_valid_field(Field())
        assert not test_model.is_valid_field("id")


class TestModelInstance:
    """Test calling a model."""

    @pytest.mark.asyncio
    async def test_create_valid_instance(self, test_model: ModelSpec) -> None:
        """Test per-field call options reach the field instances."""
        instance = test_model(
            {"id": "ff", "name": None},
            {"name": {"hidden": True, "nullable": True, "name": "new-name"}},
        )
        assert isinstance(instance, ModelInstance)
        assert instance.name.value is None
        assert instance.name.hidden is True
        assert instance.name.nullable is True
        assert instance.id.visually_hidden is True
        assert "id" in instance
        assert instance.name.get_name() == "new-name"

        assert await instance.validate() is True
        assert await test_model.validate({"id": "", "name": ""}, {"name": {"nullable": True}}) is True

    def test_call_renames_field(self, test_model: ModelSpec) -> None:
        """Test a call-time name renames the shared field spec."""
        test_model({"id": "ff", "name": None}, {"name": {"name": "new-name"}})
        instance = test_model({"id": "ff", "name": None})
        assert test_model.fields["id"].get_name() == "id"
        assert test_model.fields["name"].get_name() == "new-name"
        assert instance.id.get_name() == "id"
        assert instance.name.get_name() == "new-name"

    def test_item_access(self, test_model: ModelSpec) -> None:
        """Test fields are reachable by key."""
        instance = test_model({"id": "1"})
        assert instance["id"].value == "1"
        with pytest.raises(AttributeError):
            instance.missing  # noqa: B018

    def test_defaults_applied(self) -> None:
        """Test missing values resolve to field defaults."""
        model = model_factory({"id": Field(), "status": Field(default="draft")}, {"name": "doc"})
        instance = model({"id": "1"})
        assert instance.values() == {"id": "1", "status": "draft"}
        assert instance.raw_values() == {"id": "1"}
        assert instance["status"].raw_value is MISSING

    @pytest.mark.asyncio
    async def test_instance_validate_fails(self, test_model: ModelSpec) -> None:
        """Test one failing field fails the instance."""
        assert await test_model({"id": "1", "name": None}).validate() is False
        assert await test_model({"id": "1"}).validate() is False
        assert await test_model({"id": "1", "name": "n"}).validate() is True

    def test_pk(self) -> None:
        """Test primary key lookup honours meta."""
        model = model_factory({"slug": Field()}, {"name": "page", "primary_key": "slug"})
        assert model({"slug": "home"}).pk == "home"
        assert model_factory({"x": Field()}, {"name": "nopk"})({"x": "1"}).pk is None


class TestModelValidation:
    """Test ModelSpec.validate."""

    @pytest.mark.asyncio
    async def test_non_nullable(self, test_model: ModelSpec) -> None:
        """Test nullable=False rejects None."""
        assert await test_model.validate({"id": "", "name": ""}, {"name": {"nullable": False}}) is True
        assert await test_model.validate({"id": "", "name": None}, {"name": {"nullable": False}}) is False

    @pytest.mark.asyncio
    async def test_nullable(self, test_model: ModelSpec) -> None:
        """Test nullable=True accepts None."""
        assert await test_model.validate({"id": "", "name": None}, {"name": {"nullable": True}}) is True
        assert await test_model.validate({"id": "", "name": ""}, {"name": {"nullable": True}}) is True

    @pytest.mark.asyncio
    async def test_optional_and_required(self, test_model: ModelSpec) -> None:
        """Test required handling for absent values."""
        assert await test_model.validate({"id": "", "name": MISSING}, {"name": {"required": False}}) is True
        assert await test_model.validate({"id": ""}, {"name": {"required": False}}) is True
        assert await test_model.validate({"id": ""}, {"name": {"required": True}}) is False
        assert await test_model.validate({"id": "", "name": "f"}, {"name": {"required": True}}) is True
        assert await test_model.validate({"id": "", "name": 2}, {"name": {"required": True}}) is False

    @pytest.mark.asyncio
    async def test_end_to_end(self) -> None:
        """Test a nullable name field through the whole stack."""
        model = model_factory({"id": StringField(), "name": StringField(nullable=True)}, {"name": "person"})
        assert await model.validate({"id": "", "name": None}, {"name": {"nullable": True}}) is True
        assert await model.validate({"id": ""}, {"name": {"required": True}}) is False
        assert await model.validate({"id": "", "name": 2}) is False


class TestToDict:
    """Test ModelInstance.to_dict."""

    def test_plain(self) -> None:
        """Test keys are unchanged without a casing."""
        model = model_factory({"first_name": Field()}, {"name": "plain"})
        assert model({"first_name": "Ada"}).to_dict() == {"first_name": "Ada"}

    @pytest.mark.parametrize(
        ("casing", "key"),
        [
            (Casing.CAMEL_CASE, "firstName"),
            (Casing.KEBAB_CASE, "first-name"),
            ("snake_case", "first_name"),
        ],
    )
    def test_casing(self, casing: Casing | str, key: str) -> None:
        """Test keys follow meta casing."""
        model = model_factory({"first_name": Field()}, {"name": "cased", "casing": casing})
        assert model({"first_name": "Ada"}).to_dict() == {key: "Ada"}

    def test_unknown_casing(self) -> None:
        """Test an unknown casing is rejected."""
        model = model_factory({"first_name": Field()}, {"name": "cased", "casing": "shout"})
        with pytest.raises(ValueError):
            model({"first_name": "Ada"}).to_dict()

    def test_compute(self) -> None:
        """Test computed fields derive from the other values."""
        model = model_factory(
            {
                "first": Field(),
                "last": Field(),
                "full": Field(required=False, compute=lambda values: f"{values['first']} {values['last']}"),
            },
            {"name": "named"},
        )
        assert model({"first": "Ada", "last": "Lovelace"}).to_dict()["full"] == "Ada Lovelace"


class TestModelEvents:
    """Test model lifecycle hooks."""

    def test_init_and_register_events(self) -> None:
        """Test hooks fire on construction."""
        calls: list[str] = []
        registry = ModelRegistry("events")
        registry.events.after_register.subscribe(lambda name, model: calls.append(f"registry:{name}"))
        model = model_factory({"id": Field()}, {"name": "evented"}, registry=registry)
        assert calls == ["registry:evented"]
        assert model.events.get_event("before_create") is not None

    def test_model_hooks_with_prepared_events(self) -> None:
        """Test model-level init and register hooks reach their subscribers."""
        calls: list[tuple[str, object]] = []
        events = ModelEvents("hooked")
        for hook in ("before_init", "after_init", "before_register", "after_register"):
            events.subscribe(hook, lambda model, hook=hook: calls.append((hook, model)))

        model = model_factory({"id": Field()}, {"name": "hooked"}, events=events)

        assert model.events is events
        assert calls == [
            ("before_init", model),
            ("after_init", model),
            ("before_register", model),
            ("after_register", model),
        ]

    def test_after_register_skipped_on_failure(self) -> None:
        """Test a rejected registration fires before_register only."""
        registry = ModelRegistry("strict")
        model_factory({"id": Field()}, {"name": "taken"}, registry=registry)
        calls: list[str] = []
        events = ModelEvents("taken")
        events.subscribe("before_register", lambda model: calls.append("before"))
        events.subscribe("after_register", lambda model: calls.append("after"))
        with pytest.raises(DuplicateModelError):
            model_factory({"id": Field()}, {"name": "taken"}, registry=registry, events=events)
        assert calls == ["before"]
