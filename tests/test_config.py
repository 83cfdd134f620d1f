"""
Tests for analysis configuration loading and overrides.
"""

from pathlib import Path

import pytest
import yaml

from mtcami.config.analysis import (
    AnalysisConfig,
    ConfidenceConfig,
    ConfigError,
    load_analysis_config,
)

SAMPLE_CONFIG = Path(__file__).resolve().parents[1] / 'config' / 'analysis.yaml'


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


class TestAnalysisConfig:

    def test_derived_properties(self):
        config = AnalysisConfig(2, 3, [0.2, 0.8], [0.1, 0.9])

        assert config.total_length == 5
        assert config.n_symbols == 3
        assert config.cause_partition.breakpoints == (0.2, 0.8)
        assert not config.is_local

    def test_scalar_breakpoint(self):
        config = AnalysisConfig(1, 1, 0.5, 0.5)
        assert config.cause_breakpoints == (0.5,)

    @pytest.mark.parametrize('field,value', [
        ('past_length', 0),
        ('future_length', -1),
        ('tau', 0),
        ('window_length', 0),
        ('n_jobs', 0),
        ('window_length', True),
    ])
    def test_validate_rejects(self, field, value):
        config = AnalysisConfig(1, 1, [0.5], [0.5]).with_overrides(**{field: value})
        with pytest.raises(ConfigError):
            config.validate()

    def test_negative_delay_allowed(self):
        AnalysisConfig(1, 1, [0.5], [0.5], delay=-4).validate()

    def test_confidence_method_checked(self):
        config = AnalysisConfig(1, 1, [0.5], [0.5], confidence={'method': 'bootstrap'})
        with pytest.raises(ConfigError):
            config.validate()

    def test_overrides_skip_none(self):
        base = AnalysisConfig(1, 1, [0.5], [0.5], tau=2)
        config = base.with_overrides(tau=None, units='nats', max_runs=7)

        assert config.tau == 2
        assert config.units == 'nats'
        assert config.confidence.max_runs == 7
        assert base.confidence.max_runs == 0

    def test_dict_round_trip(self):
        config = AnalysisConfig(2, 1, [0.5], [0.5], window_length=50,
                                confidence=ConfidenceConfig(5, 'shuffle', 3))
        again = AnalysisConfig.from_dict(config.to_dict())

        assert again.to_dict() == config.to_dict()

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigError):
            AnalysisConfig.from_dict({'past_length': 1, 'future_length': 1,
                                      'cause_breakpoints': [0.5], 'effect_breakpoints': [0.5],
                                      'lag': 3})

    def test_from_dict_missing_key(self):
        with pytest.raises(ConfigError):
            AnalysisConfig.from_dict({'past_length': 1, 'cause_breakpoints': [0.5]})


class TestLoadAnalysisConfig:

    def test_sample_config(self):
        config = load_analysis_config(SAMPLE_CONFIG)

        assert config.past_length == 2
        assert config.units == 'nats'
        assert config.confidence.enabled

    def test_load_and_cache(self, tmp_path):
        path = write_yaml(tmp_path / 'analysis.yaml', {
            'past_length': 1,
            'future_length': 2,
            'cause_breakpoints': [0.5],
            'effect_breakpoints': [0.5],
            'confidence': {'max_runs': 4, 'seed': 11},
        })

        config = load_analysis_config(path)
        assert config.future_length == 2
        assert config.confidence.seed == 11
        assert load_analysis_config(str(path)) is config

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_analysis_config(tmp_path / 'nope.yaml')

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text('- 1\n- 2\n')
        with pytest.raises(ConfigError):
            load_analysis_config(path)

    def test_invalid_values(self, tmp_path):
        path = write_yaml(tmp_path / 'bad.yaml', {
            'past_length': 0,
            'future_length': 1,
            'cause_breakpoints': [0.5],
            'effect_breakpoints': [0.5],
        })
        with pytest.raises(ConfigError):
            load_analysis_config(path)

    def test_unknown_confidence_key(self, tmp_path):
        path = write_yaml(tmp_path / 'bad.yaml', {
            'past_length': 1,
            'future_length': 1,
            'cause_breakpoints': [0.5],
            'effect_breakpoints': [0.5],
            'confidence': {'runs': 3},
        })
        with pytest.raises(ConfigError):
            load_analysis_config(path)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
