import pytest

from kinesampler.config import SamplerConfig
from kinesampler.errors import ConfigurationError
from kinesampler.physics.binding import BindingMode


class TestSamplerConfig:

    def test_defaults(self):
        cfg = SamplerConfig()
        assert cfg.safety_factor == 1.6
        assert cfg.cache_min_energy == 1.0
        assert cfg.max_iterations == 1000
        assert cfg.max_xsec_nucleon_throws == 800
        assert cfg.binding_mode is BindingMode.USE_NUCLEAR_MODEL
        assert not cfg.uniform_over_phase_space

    def test_binding_mode_from_string(self):
        cfg = SamplerConfig(binding_mode='OnShellWithCorrection')
        assert cfg.binding_mode is BindingMode.ON_SHELL_WITH_CORRECTION

    def test_unknown_binding_mode(self):
        with pytest.raises(ConfigurationError):
            SamplerConfig(binding_mode='Spectral')

    @pytest.mark.parametrize("values", [
        {'safety_factor': 0.9},
        {'max_iterations': 0},
        {'cache_min_energy': -1.0},
        {'max_diff_tolerance': -0.1},
        {'n_phi': 0},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(ConfigurationError):
            SamplerConfig(**values)

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigurationError, match='safety'):
            SamplerConfig.from_dict({'safety': 2.0})

    def test_dict_roundtrip(self):
        cfg = SamplerConfig(safety_factor=2.0, binding_mode='OnShell')
        assert SamplerConfig.from_dict(cfg.to_dict()) == cfg

    def test_from_yaml(self, tmp_path):
        path = tmp_path / 'sampler.yaml'
        path.write_text("safety_factor: 1.2\nbinding_mode: OnShell\nmax_iterations: 50\n")
        cfg = SamplerConfig.from_yaml(path)
        assert cfg.safety_factor == 1.2
        assert cfg.binding_mode is BindingMode.ON_SHELL
        assert cfg.max_iterations == 50
        assert cfg.cache_min_energy == 1.0

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            SamplerConfig.from_yaml(tmp_path / 'missing.yaml')

    def test_from_yaml_not_a_mapping(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError):
            SamplerConfig.from_yaml(path)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SamplerConfig(safety_factor=0.5)
