"""Tests for the Blackboard manifest store."""

import logging
import threading

from atomforge.application.blackboard import Blackboard, BlackboardConfig
from atomforge.domain.models import (
    AtomKind,
    AtomStatus,
    DtoSignature,
    InterfaceSignature,
    Layer,
)
from atomforge.infrastructure.persistence.memory import InMemoryManifestStorage
from tests.factories import make_atom


class TestLoad:
    """Tests for loading and initializing the manifest."""

    def test_missing_manifest_initializes_default_layers(
        self, memory_storage: InMemoryManifestStorage
    ) -> None:
        blackboard = Blackboard(memory_storage)

        assert set(blackboard.layers()) == {"Core", "Infrastructure", "Presentation"}
        assert blackboard.atoms() == []
        assert memory_storage.exists()
        assert memory_storage.write_count == 1

    def test_missing_manifest_uses_configured_project(
        self, memory_storage: InMemoryManifestStorage
    ) -> None:
        config = BlackboardConfig(project_name="Shop", root_namespace="Shop.App")
        blackboard = Blackboard(memory_storage, config)

        assert blackboard.metadata().name == "Shop"
        assert blackboard.metadata().root_namespace == "Shop.App"

    def test_corrupt_manifest_falls_back_without_overwriting(self, caplog) -> None:
        storage = InMemoryManifestStorage(text="{not json")

        with caplog.at_level(logging.ERROR, logger="atomforge"):
            blackboard = Blackboard(storage)

        assert "Failed to load manifest" in caplog.text
        assert set(blackboard.layers()) == {"Core", "Infrastructure", "Presentation"}
        assert storage.text == "{not json"
        assert storage.write_count == 0

    def test_deeply_nested_manifest_falls_back(self) -> None:
        """Nesting too deep for the JSON decoder is treated as corruption."""
        storage = InMemoryManifestStorage(text="[" * 100000 + "]" * 100000)

        blackboard = Blackboard(storage)

        assert set(blackboard.layers()) == {"Core", "Infrastructure", "Presentation"}
        assert blackboard.atoms() == []
        assert storage.write_count == 0

    def test_failing_storage_adapter_falls_back(self, caplog) -> None:
        class BrokenStorage(InMemoryManifestStorage):
            def read(self):
                raise RuntimeError("disk controller on fire")

        storage = BrokenStorage(text="{}")

        with caplog.at_level(logging.ERROR, logger="atomforge"):
            blackboard = Blackboard(storage)

        assert "Failed to load manifest" in caplog.text
        assert "Core" in blackboard.layers()

    def test_schema_invalid_manifest_falls_back(self) -> None:
        storage = InMemoryManifestStorage(text='{"version": "1.0"}')

        blackboard = Blackboard(storage)

        assert blackboard.load() is False
        assert blackboard.atoms() == []

    def test_round_trip_through_storage(
        self, memory_storage: InMemoryManifestStorage
    ) -> None:
        first = Blackboard(memory_storage)
        first.upsert_atom(make_atom("repo", ("dto",)))
        first.upsert_atom(make_atom("dto", kind=AtomKind.DTO, layer="Core"))
        first.add_interface_signature(
            InterfaceSignature("IRepo", "AtomForge.Core", ("void Save()",))
        )

        second = Blackboard(memory_storage)

        assert second.get_atom("repo") == first.get_atom("repo")
        assert second.get_atom("dto") == first.get_atom("dto")
        assert second.signature_table().interface_named("IRepo") is not None
        assert second.metadata().created_at == first.metadata().created_at


class TestSave:
    """Tests for save() and auto-save."""

    def test_auto_save_on_every_mutation(
        self, blackboard: Blackboard, memory_storage: InMemoryManifestStorage
    ) -> None:
        before = memory_storage.write_count
        blackboard.upsert_atom(make_atom("a"))
        blackboard.update_atom_status("a", AtomStatus.IN_PROGRESS)

        assert memory_storage.write_count == before + 2

    def test_upsert_atoms_saves_once(
        self, blackboard: Blackboard, memory_storage: InMemoryManifestStorage
    ) -> None:
        before = memory_storage.write_count
        blackboard.upsert_atoms([make_atom("a"), make_atom("b"), make_atom("c")])

        assert memory_storage.write_count == before + 1
        assert len(blackboard.atoms()) == 3

    def test_manual_save(
        self, manual_blackboard: Blackboard, memory_storage: InMemoryManifestStorage
    ) -> None:
        before = memory_storage.write_count
        manual_blackboard.upsert_atom(make_atom("a"))
        assert memory_storage.write_count == before

        assert manual_blackboard.save() is True
        assert memory_storage.write_count == before + 1

    def test_save_failure_returns_false_and_keeps_state(
        self, manual_blackboard: Blackboard, memory_storage: InMemoryManifestStorage, caplog
    ) -> None:
        manual_blackboard.upsert_atom(make_atom("a"))
        memory_storage.fail_writes = True

        with caplog.at_level(logging.ERROR, logger="atomforge"):
            assert manual_blackboard.save() is False

        assert "Failed to save manifest" in caplog.text
        assert manual_blackboard.get_atom("a") is not None

    def test_auto_save_failure_does_not_raise(
        self, blackboard: Blackboard, memory_storage: InMemoryManifestStorage
    ) -> None:
        memory_storage.fail_writes = True

        blackboard.upsert_atom(make_atom("a"))

        assert blackboard.get_atom("a") is not None

    def test_save_stamps_last_updated(self, manual_blackboard: Blackboard) -> None:
        before = manual_blackboard.metadata().last_updated

        manual_blackboard.save()

        assert manual_blackboard.metadata().last_updated >= before


class TestAtoms:
    """Tests for atom records."""

    def test_upsert_replaces_by_id(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atom(make_atom("a"))
        blackboard.upsert_atom(make_atom("a", ("b",)))

        assert blackboard.get_atom("a").dependencies == ("b",)
        assert len(blackboard.atoms()) == 1

    def test_get_unknown_atom(self, blackboard: Blackboard) -> None:
        assert blackboard.get_atom("nope") is None

    def test_upsert_undeclared_layer_warns(self, blackboard: Blackboard, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="atomforge"):
            blackboard.upsert_atom(make_atom("x", layer="Plugins"))

        assert "undeclared layer 'Plugins'" in caplog.text
        assert blackboard.get_atom("x") is not None

    def test_update_status(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atom(make_atom("a"))

        assert blackboard.update_atom_status("a", AtomStatus.IN_PROGRESS)
        assert blackboard.get_atom("a").status == AtomStatus.IN_PROGRESS

    def test_update_status_unknown_id_is_noop(
        self, blackboard: Blackboard, memory_storage: InMemoryManifestStorage
    ) -> None:
        before = memory_storage.write_count

        assert blackboard.update_atom_status("ghost", AtomStatus.COMPLETED) is False
        assert memory_storage.write_count == before
        assert blackboard.get_atom("ghost") is None

    def test_uncommon_transition_warns_but_applies(
        self, blackboard: Blackboard, caplog
    ) -> None:
        blackboard.upsert_atom(make_atom("a", status=AtomStatus.COMPLETED))

        with caplog.at_level(logging.WARNING, logger="atomforge"):
            blackboard.update_atom_status("a", AtomStatus.PENDING)

        assert "outside the usual lifecycle" in caplog.text
        assert blackboard.get_atom("a").status == AtomStatus.PENDING

    def test_atoms_by_status(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atoms(
            [
                make_atom("a", status=AtomStatus.COMPLETED),
                make_atom("b"),
                make_atom("c", status=AtomStatus.COMPLETED),
            ]
        )

        completed = blackboard.atoms_by_status(AtomStatus.COMPLETED)

        assert {a.atom_id for a in completed} == {"a", "c"}

    def test_mark_materialized(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atom(make_atom("a"))

        assert blackboard.mark_materialized("a", "src/Core/UserDto.cs")
        assert blackboard.get_atom("a").file_path == "src/Core/UserDto.cs"
        assert not blackboard.mark_materialized("ghost", "x.cs")

    def test_record_compile_errors_counts_retries(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atom(make_atom("a"))

        blackboard.record_compile_errors("a", ["CS0246: type not found"])
        blackboard.record_compile_errors("a", ["CS1002: ; expected"])

        atom = blackboard.get_atom("a")
        assert atom.compile_errors == ("CS1002: ; expected",)
        assert atom.retry_count == 2


class TestReadiness:
    """Tests for dependencies_satisfied() and ready_atoms()."""

    def test_all_dependencies_completed(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atoms(
            [
                make_atom("a", status=AtomStatus.COMPLETED),
                make_atom("b", status=AtomStatus.COMPLETED),
            ]
        )

        assert blackboard.dependencies_satisfied(make_atom("c", ("a", "b")))

    def test_pending_dependency_not_satisfied(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atoms(
            [make_atom("a", status=AtomStatus.COMPLETED), make_atom("b")]
        )

        assert not blackboard.dependencies_satisfied(make_atom("c", ("a", "b")))

    def test_missing_dependency_not_satisfied(self, blackboard: Blackboard) -> None:
        assert not blackboard.dependencies_satisfied(make_atom("c", ("ghost",)))

    def test_no_dependencies_is_satisfied(self, blackboard: Blackboard) -> None:
        assert blackboard.dependencies_satisfied(make_atom("c"))

    def test_ready_atoms(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atoms(
            [
                make_atom("done", status=AtomStatus.COMPLETED),
                make_atom("ready", ("done",)),
                make_atom("blocked", ("ready",)),
                make_atom("busy", ("done",), status=AtomStatus.IN_PROGRESS),
            ]
        )

        assert [a.atom_id for a in blackboard.ready_atoms()] == ["ready"]


class TestLayerValidation:
    """Tests for validate_layer_dependencies()."""

    def test_infrastructure_on_presentation_is_violation(
        self, blackboard: Blackboard, caplog
    ) -> None:
        blackboard.upsert_atom(make_atom("ui", layer="Presentation"))
        repo = make_atom("repo", ("ui",), layer="Infrastructure")

        with caplog.at_level(logging.ERROR, logger="atomforge"):
            assert blackboard.validate_layer_dependencies(repo) is False

        assert "Architectural violation" in caplog.text

    def test_allowed_dependency_passes(self, blackboard: Blackboard) -> None:
        blackboard.upsert_atom(make_atom("dto", kind=AtomKind.DTO, layer="Core"))

        assert blackboard.validate_layer_dependencies(make_atom("repo", ("dto",)))

    def test_missing_dependency_is_ignored(self, blackboard: Blackboard) -> None:
        assert blackboard.validate_layer_dependencies(make_atom("repo", ("ghost",)))

    def test_unknown_layer_passes_with_warning(
        self, blackboard: Blackboard, caplog
    ) -> None:
        blackboard.upsert_atom(make_atom("ui", layer="Presentation"))

        with caplog.at_level(logging.WARNING, logger="atomforge"):
            result = blackboard.validate_layer_dependencies(
                make_atom("odd", ("ui",), layer="Plugins")
            )

        assert result is True
        assert "Unknown layer: Plugins" in caplog.text

    def test_set_layer_extends_policy(self, blackboard: Blackboard) -> None:
        blackboard.set_layer(
            Layer("Tests", allowed_dependencies=frozenset({"Core", "Infrastructure"}))
        )
        blackboard.upsert_atom(make_atom("repo"))

        atom = make_atom("t", ("repo",), kind=AtomKind.TEST, layer="Tests")
        assert blackboard.validate_layer_dependencies(atom)

    def test_set_layer_logs_policy_problems(self, blackboard: Blackboard, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="atomforge"):
            blackboard.set_layer(Layer("Web", allowed_dependencies=frozenset({"Data"})))

        assert "allows undeclared layer 'Data'" in caplog.text


class TestSignatures:
    """Tests for the semantic signature table."""

    def test_replace_by_name_and_namespace(self, blackboard: Blackboard) -> None:
        blackboard.add_interface_signature(
            InterfaceSignature("IRepo", "App.Core", ("void Save()",))
        )
        blackboard.add_interface_signature(
            InterfaceSignature("IRepo", "App.Core", ("void Save()", "void Load()"))
        )

        table = blackboard.signature_table()
        assert len(table.interfaces) == 1
        assert table.interface_named("IRepo").methods == ("void Save()", "void Load()")

    def test_same_name_different_namespace_coexist(self, blackboard: Blackboard) -> None:
        blackboard.add_dto_signature(DtoSignature("UserDto", "App.Core"))
        blackboard.add_dto_signature(DtoSignature("UserDto", "App.Web"))

        assert len(blackboard.signature_table().dtos) == 2

    def test_table_is_a_snapshot(self, blackboard: Blackboard) -> None:
        table = blackboard.signature_table()
        blackboard.add_dto_signature(DtoSignature("UserDto", "App.Core"))

        assert len(table.dtos) == 0


class TestConcurrency:
    def test_parallel_upserts_are_not_lost(
        self, blackboard: Blackboard, memory_storage: InMemoryManifestStorage
    ) -> None:
        def worker(prefix: str) -> None:
            for i in range(50):
                blackboard.upsert_atom(make_atom(f"{prefix}-{i}"))
                blackboard.update_atom_status(f"{prefix}-{i}", AtomStatus.IN_PROGRESS)

        threads = [threading.Thread(target=worker, args=(f"t{n}",)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(blackboard.atoms()) == 400
        assert all(a.status == AtomStatus.IN_PROGRESS for a in blackboard.atoms())
        assert len(Blackboard(memory_storage).atoms()) == 400
