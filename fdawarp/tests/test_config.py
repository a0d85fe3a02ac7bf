import pytest

from fdawarp.aligner import ElasticAligner
from fdawarp.config import AlignmentConfig, AlignmentMethod
from fdawarp.template import MeanUpdate, MedianUpdate


@pytest.mark.parametrize(
    "value,expected",
    [
        ("mean", AlignmentMethod.MEAN),
        ("median", AlignmentMethod.MEDIAN),
        ("med", AlignmentMethod.MEDIAN),
        ("mea", AlignmentMethod.MEAN),
        ("  Median ", AlignmentMethod.MEDIAN),
        (AlignmentMethod.MEAN, AlignmentMethod.MEAN),
    ],
)
def test_method_parsing(value, expected):
    assert AlignmentMethod.parse(value) is expected


@pytest.mark.parametrize("value", ["me", "mode", "", "average"])
def test_method_parsing_rejects_ambiguous_or_unknown(value):
    with pytest.raises(ValueError, match="invalid method selection"):
        AlignmentMethod.parse(value)


def test_defaults():
    cfg = AlignmentConfig()
    assert cfg.lam == 0.0
    assert cfg.method is AlignmentMethod.MEAN
    assert cfg.omethod == "DP"
    assert cfg.max_iter == 20
    assert cfg.sparam == 25
    assert not cfg.parallel and not cfg.smooth_data


@pytest.mark.parametrize(
    "options",
    [
        {"lam": -0.1},
        {"lam": float("nan")},
        {"omethod": "RBFGS"},
        {"max_iter": 0},
        {"sparam": -1},
        {"grid_dim": 0},
        {"method": "trimmed"},
    ],
)
def test_invalid_options_raise(options):
    with pytest.raises(ValueError):
        AlignmentConfig(**options)


def test_aligner_validates_before_computing():
    with pytest.raises(ValueError):
        ElasticAligner(method="mode")
    with pytest.raises(ValueError):
        ElasticAligner(lam=-1)


def test_aligner_picks_update_rule():
    assert isinstance(ElasticAligner(method="mean").rule, MeanUpdate)
    assert isinstance(ElasticAligner(method="median").rule, MedianUpdate)
    aligner = ElasticAligner(AlignmentConfig(lam=1.0), method="median")
    assert aligner.config.lam == 1.0
    assert isinstance(aligner.rule, MedianUpdate)


def test_from_yaml(tmp_path):
    path = tmp_path / "align.yaml"
    path.write_text("method: median\nlam: 0.5\nmax_iter: 7\nparallel: true\n", encoding="utf8")
    cfg = AlignmentConfig.from_yaml(path)
    assert cfg.method is AlignmentMethod.MEDIAN
    assert cfg.lam == 0.5
    assert cfg.max_iter == 7
    assert cfg.parallel


def test_from_yaml_rejects_unknown_keys_and_non_mappings(tmp_path):
    bad_key = tmp_path / "bad.yaml"
    bad_key.write_text("lambda: 1.0\n", encoding="utf8")
    with pytest.raises(ValueError, match="Unknown configuration keys"):
        AlignmentConfig.from_yaml(bad_key)
    not_map = tmp_path / "list.yaml"
    not_map.write_text("- 1\n- 2\n", encoding="utf8")
    with pytest.raises(ValueError):
        AlignmentConfig.from_yaml(not_map)


def test_to_dict_round_trip():
    cfg = AlignmentConfig(lam=2.0, method="median", grid_dim=5)
    data = cfg.to_dict()
    assert data["method"] == "median"
    assert AlignmentConfig.from_mapping(data) == cfg
