"""Tests for layered_config.loader."""

import json
import threading
import time
from pathlib import Path

import pytest

from layered_config import (
    ConfigLoader,
    ConfigurationError,
    ConfigValidationError,
    DecodeShapeError,
    EnvNaming,
    ParseResult,
    SourceReadError,
    decode_yaml,
    new_config,
)

from sample_schemas import BasicConfig, Camel, Collision, Counter, Preprocessed


def write_json(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestSourceCollection:
    """Tests for the builder methods."""

    def test_methods_return_the_loader(self, fixtures_dir: Path):
        loader = new_config(BasicConfig)

        assert loader.add_value({}) is loader
        assert loader.add_file(fixtures_dir / "config1.json") is loader
        assert loader.enable_env() is loader
        assert isinstance(loader, ConfigLoader)

    def test_add_value_is_variadic_and_cumulative(self):
        loader = new_config(BasicConfig).add_value({"a": 1}, {"b": 2}).add_value({"c": 3})
        assert loader.values == ({"a": 1}, {"b": 2}, {"c": 3})

    def test_add_value_rejects_non_mappings(self):
        with pytest.raises(ConfigurationError):
            new_config(BasicConfig).add_value([1, 2])  # type: ignore[arg-type]

    def test_add_file_accepts_paths_and_pairs(self, fixtures_dir: Path):
        loader = new_config(BasicConfig).add_file(
            str(fixtures_dir / "config1.json"),
            (fixtures_dir / "config1.yml", decode_yaml),
        )

        assert [source.path.name for source in loader.files] == ["config1.json", "config1.yml"]
        assert loader.files[1].decoder is decode_yaml

    def test_add_file_default_decoder(self, fixtures_dir: Path):
        loader = new_config(BasicConfig).add_file(fixtures_dir / "config1.yml", decoder=decode_yaml)
        assert loader.files[0].decoder is decode_yaml

    def test_add_file_rejects_bad_entries(self):
        with pytest.raises(ConfigurationError):
            new_config(BasicConfig).add_file(("config.json", "not callable"))  # type: ignore[arg-type]

    def test_add_file_does_not_read(self, tmp_path: Path):
        """Test that missing files only fail at parse time."""
        loader = new_config(BasicConfig).add_file(tmp_path / "missing.json")

        with pytest.raises(SourceReadError):
            loader.parse()

    def test_enable_env_is_idempotent(self):
        loader = new_config(BasicConfig).enable_env().enable_env()
        assert loader.env_enabled

    def test_env_disabled_by_default(self):
        assert not new_config(BasicConfig).env_enabled

    def test_unknown_env_naming(self):
        with pytest.raises(ConfigurationError):
            new_config(BasicConfig, env_naming="dots")

    def test_env_naming_by_name(self):
        assert new_config(BasicConfig, env_naming="revised").env_naming is EnvNaming.REVISED
        assert new_config(BasicConfig, env_naming="__").env_naming is EnvNaming.REVISED


class TestParse:
    """Tests for ConfigLoader.parse()."""

    def test_parses_a_basic_config_file(self, fixtures_dir: Path):
        config = new_config(BasicConfig).add_file(fixtures_dir / "config1.json").parse()

        assert config.string == "string"
        assert config.number == 1
        assert config.object.model_dump(exclude_none=True) == {"a": "a", "b": "b"}

    def test_accepts_a_custom_decoder(self, fixtures_dir: Path):
        config = new_config(BasicConfig).add_file((fixtures_dir / "config1.yml", decode_yaml)).parse()

        assert config.string == "string"
        assert config.number == 1
        assert config.object.model_dump(exclude_none=True) == {"a": "a", "b": "b"}

    def test_deep_merges_multiple_sources(self, fixtures_dir: Path):
        config = (
            new_config(BasicConfig)
            .add_value({"string": "string", "number": 0})
            .add_file(fixtures_dir / "config1.json")
            .add_file(fixtures_dir / "config2.json")
            .parse()
        )

        assert config.number == 1
        assert config.object.model_dump() == {"a": "a", "b": "b", "c": "c"}

    def test_later_values_override_earlier(self):
        config = new_config(Counter).add_value({"n": 1}, {"n": 2}).add_value({"n": 3}).parse()
        assert config.n == 3

    def test_later_files_override_earlier(self, tmp_path: Path):
        first = write_json(tmp_path / "first.json", {"n": 1})
        second = write_json(tmp_path / "second.json", {"n": 2})

        assert new_config(Counter).add_file(first, second).parse().n == 2
        assert new_config(Counter).add_file(second, first).parse().n == 1

    def test_validation_failure_raises(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            new_config(Counter).add_value({"n": "many"}).parse()

        assert exc_info.value.issues[0].path == ("n",)

    def test_decode_shape_failure(self, fixtures_dir: Path):
        with pytest.raises(DecodeShapeError):
            new_config(BasicConfig).add_file(fixtures_dir / "list_root.json").parse()

    def test_decoder_failure_aborts_before_validation(self, fixtures_dir: Path, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("{")

        loader = new_config(BasicConfig).add_file(fixtures_dir / "config1.json", bad)
        with pytest.raises(SourceReadError):
            loader.parse()

    def test_build_input_returns_merged_record(self, fixtures_dir: Path):
        record = (
            new_config(BasicConfig)
            .add_value({"extra": True})
            .add_file(fixtures_dir / "config2.json")
            .build_input()
        )

        assert record == {"extra": True, "object": {"c": "c"}}

    def test_values_are_not_mutated(self, fixtures_dir: Path):
        value = {"object": {"a": "from value"}}
        new_config(BasicConfig).add_value(value).add_file(fixtures_dir / "config1.json").build_input()

        assert value == {"object": {"a": "from value"}}


class TestEnvironment:
    """Tests for the environment source."""

    def test_reads_from_the_environment(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("STRING", "from env")
        clean_env.setenv("NUMBER", "7")

        config = new_config(BasicConfig).add_value({"object": {}}).enable_env().parse()

        assert config.string == "from env"
        assert config.number == 7

    def test_nested_path(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("OBJECT_A", "nested")

        config = (
            new_config(BasicConfig)
            .add_value({"string": "s", "number": 1})
            .enable_env()
            .parse()
        )

        assert config.object.a == "nested"
        assert config.object.b is None

    def test_nested_path_revised_naming(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("OBJECT__A", "revised")
        clean_env.setenv("OBJECT_A", "legacy")

        config = (
            new_config(BasicConfig, env_naming=EnvNaming.REVISED)
            .add_value({"string": "s", "number": 1})
            .enable_env()
            .parse()
        )

        assert config.object.a == "revised"

    def test_unset_variable_contributes_nothing(self, clean_env: pytest.MonkeyPatch):
        record = new_config(BasicConfig).add_value({"object": {"b": "b"}}).enable_env().build_input()
        assert record == {"object": {"b": "b"}}

    def test_env_ignored_unless_enabled(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("STRING", "from env")
        record = new_config(BasicConfig).build_input()
        assert record == {}

    def test_merges_value_file_environment(self, fixtures_dir: Path, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("OBJECT_A", "a from env")
        clean_env.setenv("OBJECT_C", "c from env")

        config = (
            new_config(BasicConfig)
            .add_value({"string": "string from value", "number": -1})
            .add_file(fixtures_dir / "config1.json")
            .enable_env()
            .parse()
        )

        assert config.string == "string"
        assert config.number == 1
        assert config.object.model_dump() == {"a": "a from env", "b": "b", "c": "c from env"}

    def test_precedence_value_file_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("N", raising=False)
        path = write_json(tmp_path / "n.json", {"n": 1})
        loader = new_config(Counter).add_value({"n": 0}).add_file(path).enable_env()

        assert loader.parse().n == 1

        monkeypatch.setenv("N", "2")
        assert loader.parse().n == 2

    def test_camel_case_collision(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FOOBAR", "baz")

        config = new_config(Camel).enable_env().parse()

        assert config.fooBar == "baz"
        assert config.foobar == "baz"

    def test_path_name_collision(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FOO_BAR", "baz")

        config = new_config(Collision).enable_env().parse()

        assert config.foo_bar == "baz"
        assert config.foo.bar == "baz"

    def test_coercion_by_validator(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("N", "1")
        assert new_config(Counter).enable_env().parse().n == 1

    def test_before_validator_preprocessing(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PORTS", "80,443")
        assert new_config(Preprocessed).enable_env().parse().ports == [80, 443]

    def test_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("APP_N", "5")
        monkeypatch.setenv("N", "9")

        assert new_config(Counter).enable_env(prefix="APP").parse().n == 5

    def test_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("N", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("N=4\n")
        loader = new_config(Counter).enable_env(env_file=env_file)

        assert loader.parse().n == 4

        monkeypatch.setenv("N", "6")
        assert loader.parse().n == 6

    def test_environment_read_on_every_parse(self, monkeypatch: pytest.MonkeyPatch):
        loader = new_config(Counter).add_value({"n": 0}).enable_env()
        monkeypatch.delenv("N", raising=False)
        assert loader.parse().n == 0

        monkeypatch.setenv("N", "3")
        assert loader.parse().n == 3

        monkeypatch.delenv("N")
        assert loader.parse().n == 0

    def test_declaration_order_across_tiers_is_irrelevant(
        self, fixtures_dir: Path, clean_env: pytest.MonkeyPatch
    ):
        clean_env.setenv("OBJECT_A", "env")
        value = {"string": "value", "number": 0, "object": {"c": "value"}}
        config_file = fixtures_dir / "config1.json"

        forward = new_config(BasicConfig).add_value(value).add_file(config_file).enable_env()
        backward = new_config(BasicConfig).enable_env().add_file(config_file).add_value(value)
        mixed = new_config(BasicConfig).add_file(config_file).enable_env().add_value(value)

        assert forward.parse() == backward.parse() == mixed.parse()
        assert forward.parse().object.model_dump() == {"a": "env", "b": "b", "c": "value"}


class TestSafeParse:
    """Tests for ConfigLoader.safe_parse()."""

    def test_success(self):
        result = new_config(Counter).add_value({"n": 1}).safe_parse()

        assert isinstance(result, ParseResult)
        assert result.success
        assert result.data == Counter(n=1)
        assert result.error is None
        assert result.unwrap() == Counter(n=1)

    def test_failure_does_not_raise(self):
        result = new_config(Counter).add_value({"n": "x"}).safe_parse()

        assert not result.success
        assert result.data is None
        assert isinstance(result.error, ConfigValidationError)

        issue = result.error.issues[0]
        assert issue.path == ("n",)
        assert issue.code == "int_parsing"

    def test_failure_with_wrong_type(self):
        class Named(Counter):
            name: str

        result = new_config(Named).add_value({"n": 1, "name": 1}).safe_parse()

        assert not result.success
        assert [(i.path, i.code) for i in result.error.issues] == [(("name",), "string_type")]

    def test_unwrap_raises_carried_error(self):
        result = new_config(Counter).safe_parse()

        with pytest.raises(ConfigValidationError) as exc_info:
            result.unwrap()

        assert exc_info.value is result.error

    def test_source_errors_still_raise(self, tmp_path: Path):
        """Test that unreadable files are not turned into results."""
        loader = new_config(Counter).add_file(tmp_path / "missing.json")

        with pytest.raises(SourceReadError):
            loader.safe_parse()


class TestParseAsync:
    """Tests for the asynchronous finalize methods."""

    @pytest.mark.asyncio
    async def test_parses_asynchronously(self, fixtures_dir: Path):
        config = await (
            new_config(BasicConfig)
            .add_file(fixtures_dir / "config1.json")
            .add_file(fixtures_dir / "config2.json")
            .parse_async()
        )

        assert config.string == "string"
        assert config.number == 1
        assert config.object.model_dump() == {"a": "a", "b": "b", "c": "c"}

    @pytest.mark.asyncio
    async def test_merge_order_ignores_completion_order(self, tmp_path: Path):
        """Test that a slow earlier file still loses to a later one."""
        slow = write_json(tmp_path / "slow.json", {"n": 1})
        fast = write_json(tmp_path / "fast.json", {"n": 2})
        completed = []
        lock = threading.Lock()

        def slow_decoder(data: bytes):
            time.sleep(0.2)
            with lock:
                completed.append("slow")
            return json.loads(data)

        def fast_decoder(data: bytes):
            with lock:
                completed.append("fast")
            return json.loads(data)

        loader = new_config(Counter).add_file((slow, slow_decoder), (fast, fast_decoder))
        config = await loader.parse_async()

        assert completed == ["fast", "slow"]
        assert config.n == 2
        assert loader.parse().n == config.n

    @pytest.mark.asyncio
    async def test_files_are_read_concurrently(self, tmp_path: Path):
        paths = [write_json(tmp_path / f"{i}.json", {"n": i}) for i in range(3)]
        barrier = threading.Barrier(len(paths), timeout=5)

        def decoder(data: bytes):
            # Every read must be in flight at once to pass the barrier
            barrier.wait()
            return json.loads(data)

        loader = new_config(Counter).add_file(*paths, decoder=decoder)
        assert (await loader.parse_async()).n == 2

    @pytest.mark.asyncio
    async def test_file_failure_fails_the_whole_parse(self, fixtures_dir: Path, tmp_path: Path):
        loader = new_config(BasicConfig).add_file(
            fixtures_dir / "config1.json", tmp_path / "missing.json"
        )

        with pytest.raises(SourceReadError):
            await loader.parse_async()

    @pytest.mark.asyncio
    async def test_async_validation_failure_raises(self):
        with pytest.raises(ConfigValidationError):
            await new_config(Counter).parse_async()

    @pytest.mark.asyncio
    async def test_safe_parse_async_success(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("N", "8")
        result = await new_config(Counter).enable_env().safe_parse_async()

        assert result.success
        assert result.data.n == 8

    @pytest.mark.asyncio
    async def test_safe_parse_async_failure(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("N", raising=False)
        result = await new_config(Counter).enable_env().safe_parse_async()

        assert not result.success
        assert result.error.issues[0].path == ("n",)
        assert result.error.issues[0].code == "missing"

    @pytest.mark.asyncio
    async def test_build_input_async_matches_sync(self, fixtures_dir: Path):
        loader = (
            new_config(BasicConfig)
            .add_value({"number": 0})
            .add_file(fixtures_dir / "config1.json", fixtures_dir / "config2.json")
        )

        assert await loader.build_input_async() == loader.build_input()


class TestCustomSchema:
    """Tests for schemas that are not pydantic models."""

    def test_protocol_schema(self, monkeypatch: pytest.MonkeyPatch):
        class Leaf:
            def children(self):
                return {}

        class DictSchema:
            def children(self):
                return {"host": Leaf()}

            def validate(self, record):
                if "host" not in record:
                    raise ConfigValidationError([])
                return dict(record)

            async def validate_async(self, record):
                return self.validate(record)

        monkeypatch.setenv("HOST", "example.org")
        assert new_config(DictSchema()).enable_env().parse() == {"host": "example.org"}

    def test_rejects_unknown_schema(self):
        with pytest.raises(TypeError):
            new_config(object())
