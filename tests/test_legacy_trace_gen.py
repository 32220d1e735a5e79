import json
import random
from dataclasses import replace

import pytest

from schedsim.legacy_trace_gen import (
    ComputeTrait,
    IOTrait,
    LegacyConfig,
    TimeLimitTrait,
    TimeLimitVarianceTrait,
    generate,
    generate_serie,
    legacy_config_from_dict,
    main,
    poisson,
)
from schedsim.task import ComputeType, serie_from_json
from schedsim.traits import ArrivalTrait

CONFIG_DICT = {
    "duration": 300,
    "provision": 1.0,
    "minimal task duration": 5,
    "maximal task duration": 15,
    "turnarround amplification low": 1.5,
    "turnarround amplification high": 3.0,
    "turnarround amplification variance low": 0.5,
    "turnarround amplification variance high": 1.0,
    "minimal dominance": 0.6,
    "maximal dominance": 0.9,
    "io slice duration low": 2,
    "io slice duration high": 6,
}


@pytest.fixture
def config() -> LegacyConfig:
    return legacy_config_from_dict(CONFIG_DICT)


def check_series(serie, duration):
    assert serie[0].arrival_time == 0
    arrivals = [task.arrival_time for task in serie]
    assert arrivals == sorted(set(arrivals))
    assert all(0 <= t < duration for t in arrivals)
    for task in serie:
        kinds = [kind for kind, _ in task.slices]
        assert kinds[0] is ComputeType.CPU
        assert kinds[-1] is ComputeType.CPU
        assert all(a is not b for a, b in zip(kinds, kinds[1:]))
        assert all(length >= 1 for _, length in task.slices)
        assert task.deadline - task.arrival_time >= sum(length for _, length in task.slices)


def test_config_from_dict_reads_fields(config):
    assert config.duration == 300
    assert config.task_duration_min == 5
    assert config.io_slice_duration_high == 6
    assert config.amplification_variance_high == 1.0


def test_config_missing_key_raises():
    data = dict(CONFIG_DICT)
    del data["minimal dominance"]
    with pytest.raises(KeyError):
        legacy_config_from_dict(data)


def test_poisson_zero_mean_is_zero():
    rng = random.Random(1)
    assert all(poisson(rng, 0.0) == 0 for _ in range(50))


def test_poisson_negative_mean_raises():
    with pytest.raises(ValueError):
        poisson(random.Random(1), -1.0)


@pytest.mark.parametrize("mean", [0.3, 3.0, 100.0])
def test_poisson_sample_mean_close(mean):
    rng = random.Random(7)
    samples = [poisson(rng, mean) for _ in range(4000)]
    assert all(s >= 0 for s in samples)
    average = sum(samples) / len(samples)
    assert abs(average - mean) < 0.1 * mean + 0.05


@pytest.mark.parametrize("io_trait", list(IOTrait))
@pytest.mark.parametrize("compute_trait", list(ComputeTrait))
@pytest.mark.parametrize("arrival", list(ArrivalTrait))
def test_series_invariants(config, io_trait, compute_trait, arrival):
    serie = generate_serie(
        config,
        io_trait,
        compute_trait,
        arrival,
        TimeLimitTrait.MIXED,
        TimeLimitVarianceTrait.LARGE,
        random.Random(3),
    )
    check_series(serie, config.duration)


def test_same_seed_same_series(config):
    args = (
        IOTrait.MIXED,
        ComputeTrait.MIXED,
        ArrivalTrait.POISSON,
        TimeLimitTrait.LOOSE,
        TimeLimitVarianceTrait.SMALL,
    )
    first = generate_serie(config, *args, random.Random(11))
    second = generate_serie(config, *args, random.Random(11))
    assert first == second


def test_full_cpu_dominance_gives_single_slice(config):
    cpu_bound = replace(config, dominance_min=1.0, dominance_max=1.0)
    serie = generate_serie(
        cpu_bound,
        IOTrait.SHORT,
        ComputeTrait.CPU,
        ArrivalTrait.POISSON,
        TimeLimitTrait.TIGHT,
        TimeLimitVarianceTrait.SMALL,
        random.Random(5),
    )
    assert all(len(task.slices) == 1 for task in serie)


def test_io_trait_produces_io_slices(config):
    serie = generate_serie(
        config,
        IOTrait.SHORT,
        ComputeTrait.IO,
        ArrivalTrait.POISSON,
        TimeLimitTrait.TIGHT,
        TimeLimitVarianceTrait.SMALL,
        random.Random(5),
    )
    for task in serie:
        io_total = sum(length for kind, length in task.slices if kind is ComputeType.IO)
        assert io_total >= 1


def test_empty_duration_raises(config):
    with pytest.raises(ValueError):
        generate_serie(
            replace(config, duration=0),
            IOTrait.SHORT,
            ComputeTrait.CPU,
            ArrivalTrait.POISSON,
            TimeLimitTrait.LOOSE,
            TimeLimitVarianceTrait.SMALL,
            random.Random(1),
        )


def test_generate_writes_ten_traces(config, tmp_path):
    prefix = str(tmp_path / "trace")
    paths = generate(config, prefix, random.Random(2))
    assert [p.name for p in paths] == [f"trace-{n}.json" for n in range(1, 11)]
    for path in paths:
        check_series(serie_from_json(path.read_text()), config.duration)


def test_main_reads_config_and_writes(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(CONFIG_DICT))
    prefix = str(tmp_path / "out")
    assert main([str(config_path), prefix]) == 0
    written = sorted(p.name for p in tmp_path.glob("out-*.json"))
    assert len(written) == 10
    serie = serie_from_json((tmp_path / "out-1.json").read_text())
    assert serie[0].arrival_time == 0