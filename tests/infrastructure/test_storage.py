"""Tests for InMemoryStorage and FileStorage"""

import asyncio

import pytest

from oneword_core.domain.constants import BUILT_IN_STIMULI
from oneword_core.domain.entities import Experiment, ExperimentResults, ExperimentStatus, Sample, Stimulus
from oneword_core.domain.value_objects import ExperimentConfig, ModelResult, WordFrequency
from oneword_core.infrastructure.storage import FileStorage, InMemoryStorage


def _experiment(experiment_id: str = "exp-1", created_at: str = "2026-01-01T00:00:00") -> Experiment:
    return Experiment(
        id=experiment_id,
        stimulus="The sky is",
        selected_models=["model-a"],
        configs=[ExperimentConfig(0.7, 40)],
        samples_per_config=3,
        created_at=created_at,
    )


def _sample(n: int, word: str = "blue", experiment_id: str = "exp-1", model_id: str = "model-a") -> Sample:
    return Sample(
        id=f"{experiment_id}-{n}",
        experiment_id=experiment_id,
        model_id=model_id,
        temperature=0.7,
        top_k=40,
        word=word,
        latency_ms=100 + n,
        cost=0.0001,
        timestamp=f"2026-01-01T00:00:0{n}",
    )


def _results(experiment_id: str = "exp-1") -> ExperimentResults:
    words = (WordFrequency("blue", 2, 100.0),)
    return ExperimentResults(
        experiment_id=experiment_id,
        total_samples=2,
        unique_words=1,
        top_words=words,
        entropy=0.0,
        by_model=(ModelResult("model-a", ExperimentConfig(0.7, 40), words, 2, 1),),
        by_temperature={0.7: words},
        by_model_config=(ModelResult("model-a", ExperimentConfig(0.7, 40), words, 2, 1),),
    )


@pytest.fixture(params=["memory", "file"])
def storage(request, tmp_path):
    if request.param == "memory":
        return InMemoryStorage()
    return FileStorage(tmp_path / "data")


class TestStorageContract:
    def test_experiment_round_trip(self, storage):
        experiment = _experiment()

        async def _run():
            await storage.save_experiment(experiment)
            return await storage.load_experiment("exp-1")

        assert asyncio.run(_run()) == experiment

    def test_save_experiment_overwrites(self, storage):
        experiment = _experiment()

        async def _run():
            await storage.save_experiment(experiment)
            experiment.transition(ExperimentStatus.RUNNING)
            await storage.save_experiment(experiment)
            return await storage.load_experiment("exp-1")

        assert asyncio.run(_run()).status is ExperimentStatus.RUNNING

    def test_missing_experiment(self, storage):
        assert asyncio.run(storage.load_experiment("nope")) is None
        assert asyncio.run(storage.load_results("nope")) is None

    def test_samples_in_insertion_order(self, storage):
        samples = [_sample(1, "blue"), _sample(2, "grey"), _sample(3, "blue")]

        async def _run():
            for sample in samples:
                await storage.save_sample(sample)
            return await storage.get_samples_by_experiment("exp-1")

        assert asyncio.run(_run()) == samples

    def test_samples_by_model(self, storage):
        async def _run():
            await storage.save_sample(_sample(1, model_id="model-a"))
            await storage.save_sample(_sample(2, model_id="model-b"))
            await storage.save_sample(_sample(3, experiment_id="exp-2", model_id="model-a"))
            return await storage.get_samples_by_model("model-a")

        found = asyncio.run(_run())
        assert sorted(s.id for s in found) == ["exp-1-1", "exp-2-3"]

    def test_results_round_trip(self, storage):
        results = _results()

        async def _run():
            await storage.save_results(results)
            return await storage.load_results("exp-1")

        assert asyncio.run(_run()) == results

    def test_list_experiments_newest_first_with_filter(self, storage):
        older = _experiment("exp-old", created_at="2026-01-01T00:00:00")
        newer = _experiment("exp-new", created_at="2026-02-01T00:00:00")
        newer.transition(ExperimentStatus.RUNNING)

        async def _run():
            await storage.save_experiment(older)
            await storage.save_experiment(newer)
            return (
                await storage.list_experiments(),
                await storage.list_experiments(ExperimentStatus.PENDING),
            )

        listed, pending = asyncio.run(_run())
        assert [e.id for e in listed] == ["exp-new", "exp-old"]
        assert [e.id for e in pending] == ["exp-old"]

    def test_delete_cascades(self, storage):
        async def _run():
            await storage.save_experiment(_experiment())
            await storage.save_sample(_sample(1))
            await storage.save_results(_results())
            await storage.delete_experiment("exp-1")
            return (
                await storage.load_experiment("exp-1"),
                await storage.get_samples_by_experiment("exp-1"),
                await storage.load_results("exp-1"),
            )

        assert asyncio.run(_run()) == (None, [], None)


class TestStimulusLibrary:
    def test_built_ins_listed_when_empty(self, storage):
        assert asyncio.run(storage.list_stimuli()) == list(BUILT_IN_STIMULI)

    def test_saved_after_built_ins(self, storage):
        first = Stimulus("stim-1", "My favourite colour is", "identity")
        second = Stimulus("stim-2", "Breakfast is", "custom")

        async def _run():
            await storage.save_stimulus(first)
            await storage.save_stimulus(second)
            return await storage.list_stimuli()

        listed = asyncio.run(_run())
        assert listed[:len(BUILT_IN_STIMULI)] == list(BUILT_IN_STIMULI)
        assert listed[len(BUILT_IN_STIMULI):] == [first, second]

    def test_save_replaces_same_id(self, storage):
        async def _run():
            await storage.save_stimulus(Stimulus("stim-1", "Old text", "custom"))
            await storage.save_stimulus(Stimulus("stim-1", "New text", "custom"))
            return await storage.list_stimuli("custom")

        assert [s.text for s in asyncio.run(_run())] == ["New text"]

    def test_category_filter(self, storage):
        async def _run():
            await storage.save_stimulus(Stimulus("stim-1", "I dream of", "identity"))
            return await storage.list_stimuli("identity")

        listed = asyncio.run(_run())
        assert {s.category for s in listed} == {"identity"}
        assert [s.id for s in listed] == ["identity-1", "stim-1"]

    def test_delete(self, storage):
        async def _run():
            await storage.save_stimulus(Stimulus("stim-1", "Breakfast is", "custom"))
            await storage.delete_stimulus("stim-1")
            await storage.delete_stimulus("stim-missing")
            return await storage.list_stimuli()

        assert asyncio.run(_run()) == list(BUILT_IN_STIMULI)

    def test_built_ins_cannot_be_replaced_or_deleted(self, storage):
        async def _run():
            with pytest.raises(ValueError, match="reserved"):
                await storage.save_stimulus(Stimulus("existential-1", "Hijacked", "custom"))
            await storage.delete_stimulus("existential-1")
            return await storage.list_stimuli()

        assert asyncio.run(_run()) == list(BUILT_IN_STIMULI)


class TestInMemoryStorage:
    def test_saved_experiment_is_a_copy(self):
        storage = InMemoryStorage()
        experiment = _experiment()

        async def _run():
            await storage.save_experiment(experiment)
            experiment.transition(ExperimentStatus.RUNNING)
            return await storage.load_experiment("exp-1")

        assert asyncio.run(_run()).status is ExperimentStatus.PENDING


class TestFileStorage:
    def test_layout(self, tmp_path):
        storage = FileStorage(tmp_path)

        async def _run():
            await storage.save_experiment(_experiment())
            await storage.save_sample(_sample(1))
            await storage.save_results(_results())

        asyncio.run(_run())

        assert (tmp_path / "experiments" / "exp-1.json").exists()
        assert (tmp_path / "samples" / "exp-1.csv").exists()
        assert (tmp_path / "results" / "exp-1.json").exists()
        assert not list(tmp_path.rglob("*.tmp"))

    def test_csv_has_single_header(self, tmp_path):
        storage = FileStorage(tmp_path)

        async def _run():
            for n in range(3):
                await storage.save_sample(_sample(n))

        asyncio.run(_run())

        lines = (tmp_path / "samples" / "exp-1.csv").read_text().splitlines()
        assert lines[0].startswith("id,experiment_id,model_id")
        assert len(lines) == 4

    @pytest.mark.parametrize("word", ["null", "nan", "none", "true"])
    def test_words_stay_strings(self, tmp_path, word):
        storage = FileStorage(tmp_path)

        async def _run():
            await storage.save_sample(_sample(1, word=word))
            return await storage.get_samples_by_experiment("exp-1")

        assert asyncio.run(_run())[0].word == word

    def test_reopened_storage_sees_data(self, tmp_path):
        asyncio.run(FileStorage(tmp_path).save_sample(_sample(1)))
        assert len(asyncio.run(FileStorage(tmp_path).get_samples_by_experiment("exp-1"))) == 1

    def test_stimuli_persist_across_instances(self, tmp_path):
        stimulus = Stimulus("stim-1", "Breakfast is", "custom")
        asyncio.run(FileStorage(tmp_path).save_stimulus(stimulus))

        assert (tmp_path / "stimuli.json").exists()
        assert asyncio.run(FileStorage(tmp_path).list_stimuli("custom")) == [stimulus]
