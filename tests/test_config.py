import pytest

from imgevolve.config import build_task_state, load_config
from imgevolve.exceptions import PluginError, ValidationError
from imgevolve.plugins import HardMutator, LumaEvaluator, RGBEvaluator, SegmentedInitializer


def test_defaults():
    config = load_config()
    assert config.shape_count == 100
    assert config.vertex_count == 6
    assert config.target_image is None
    assert config.evaluator["_target_"].endswith("RGBEvaluator")


def test_user_file_and_overrides(tmp_path):
    path = tmp_path / "session.yaml"
    path.write_text(
        "shape_count: 20\n"
        "evaluator:\n"
        "  _target_: imgevolve.plugins.evaluators.LumaEvaluator\n"
        "  smooth: true\n"
    )
    config = load_config(path, overrides=["vertex_count=4"])
    assert config.shape_count == 20
    assert config.vertex_count == 4
    assert config.evaluator == {
        "_target_": "imgevolve.plugins.evaluators.LumaEvaluator",
        "smooth": True,
    }


@pytest.mark.parametrize("override", ["shape_count=0", "vertex_count=2"])
def test_invalid_budget(override):
    with pytest.raises(ValidationError):
        load_config(overrides=[override])


def test_build_task_state_with_image(target_image):
    config = load_config(overrides=["shape_count=5", "vertex_count=3"])
    state = build_task_state(config, image=target_image)
    assert state.shape_count == 5
    assert state.image_width == target_image.width
    assert isinstance(state.initializer, SegmentedInitializer)
    assert state.initializer.color == (0, 0, 0)
    assert isinstance(state.mutator, HardMutator)
    assert isinstance(state.evaluator, RGBEvaluator)


def test_build_task_state_from_path(target_image, tmp_path):
    image_path = tmp_path / "target.png"
    target_image.save(image_path)
    config = load_config(
        overrides=[
            f"target_image={image_path}",
            "evaluator._target_=imgevolve.plugins.evaluators.LumaEvaluator",
        ]
    )
    assert config.evaluator == {"_target_": "imgevolve.plugins.evaluators.LumaEvaluator"}
    state = build_task_state(config)
    assert isinstance(state.evaluator, LumaEvaluator)
    assert list(state.image.getdata()) == list(target_image.getdata())


def test_wrong_capability_is_rejected(target_image):
    config = load_config(
        overrides=["mutator._target_=imgevolve.plugins.evaluators.RGBEvaluator"]
    )
    with pytest.raises(PluginError):
        build_task_state(config, image=target_image)
