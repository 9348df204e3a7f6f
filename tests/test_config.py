"""
Configuration, Backend and Diagnostics Tests

Tests the config-dict entry point and its supporting pieces:
- Default filling and validation of chain configs
- Backend selection and fallbacks
- Post-run diagnostics
- run_from_config end to end on a small problem

Run with: pytest tests/test_config.py -v
"""

import numpy as np
import jax
import jax.numpy as jnp
import pytest

from gpmc import BackendConfig, detect_backend, select_device
from gpmc.error_handling import diagnose_chain, validate_chain_config
from gpmc.mcmc import RandomWalkMetropolis, clean_chain_config, gen_rng_key, run_from_config
from gpmc.mcmc.types import Phase

from .conftest import ShiftSampler


# ============================================================================
# CONFIG CLEANING AND VALIDATION
# ============================================================================

class TestChainConfig:

    def test_defaults_filled(self):
        config = clean_chain_config({'num_warmup': 10, 'num_samples': 20})

        assert config['num_thin'] == 1
        assert config['refresh'] == 100
        assert config['save_warmup'] is False
        assert config['rng_seed'] == 0
        assert config['platform'] is None
        assert config['device_id'] == 0

    def test_user_values_kept_and_input_not_mutated(self):
        user = {'num_warmup': 10, 'num_samples': 20, 'num_thin': 4}
        config = clean_chain_config(user)

        assert config['num_thin'] == 4
        assert 'refresh' not in user

    def test_valid_config_passes(self):
        validate_chain_config({'num_warmup': 0, 'num_samples': 5, 'num_thin': 2,
                               'refresh': 0, 'save_warmup': True})

    def test_missing_required_keys(self):
        with pytest.raises(ValueError, match="Missing required config key: 'num_samples'"):
            validate_chain_config({'num_warmup': 10})

    def test_all_errors_reported_together(self):
        with pytest.raises(ValueError) as excinfo:
            validate_chain_config({'num_warmup': -1, 'num_samples': 5, 'num_thin': 0,
                                   'refresh': -2, 'save_warmup': 'yes'})

        message = str(excinfo.value)
        assert "num_warmup must be >= 0" in message
        assert "num_thin must be >= 1" in message
        assert "refresh must be >= 0" in message
        assert "save_warmup must be True or False" in message

    def test_non_integer_rejected(self):
        with pytest.raises(ValueError, match="num_samples must be an integer"):
            validate_chain_config({'num_warmup': 1, 'num_samples': 2.5})

    def test_rng_key_reproducible(self):
        np.testing.assert_array_equal(np.asarray(gen_rng_key(7)), np.asarray(gen_rng_key(7)))


# ============================================================================
# BACKEND
# ============================================================================

class TestBackend:

    def test_default_device(self):
        assert select_device() == jax.devices()[0]

    def test_cpu_device(self):
        device = select_device(BackendConfig(platform='cpu'))
        assert device.platform == 'cpu'

    def test_out_of_range_device_falls_back(self):
        device = select_device(BackendConfig(device_id=10_000))
        assert device == jax.devices()[0]

    def test_distributed_single_process_still_resolves(self):
        device = select_device(BackendConfig(distributed=True))
        assert device == jax.devices()[0]

    @pytest.mark.parametrize("kwargs", [dict(platform='fpga'), dict(device_id=-1)])
    def test_invalid_backend_config(self, kwargs):
        with pytest.raises(ValueError):
            BackendConfig(**kwargs)

    def test_detect_backend_fields(self):
        info = detect_backend()

        assert set(info) == {'jax_backend', 'jax_devices', 'process_count', 'jax_version'}
        assert info['process_count'] >= 1
        assert len(info['jax_devices']) >= 1


# ============================================================================
# DIAGNOSTICS
# ============================================================================

class TestDiagnostics:

    def test_no_draws(self):
        diagnostics = diagnose_chain(np.empty((0, 0)), np.array([]), {})
        assert diagnostics['warnings'] == ["No draws were recorded"]
        assert diagnostics['issues'] == []

    def test_non_finite_draws_flagged(self):
        params = np.array([[0.0, 1.0], [np.nan, 2.0]])
        diagnostics = diagnose_chain(params, np.array([1.0, 1.0]), {})
        assert any("NaN or Inf" in issue for issue in diagnostics['issues'])

    def test_stuck_parameter_and_low_acceptance(self):
        params = np.column_stack([np.zeros(50), np.linspace(0, 1, 50)])
        accepted = np.zeros(50)
        accepted[0] = 1.0

        diagnostics = diagnose_chain(params, accepted, {'wall_time': 1.0})

        assert diagnostics['wall_time'] == 1.0
        assert any("1 parameter(s) appear stuck" in w for w in diagnostics['warnings'])
        assert any("Acceptance rate is low" in w for w in diagnostics['warnings'])
        assert "Total draws: 50" in diagnostics['info']
        assert "Number of parameters: 2" in diagnostics['info']


# ============================================================================
# RUN FROM CONFIG
# ============================================================================

class TestRunFromConfig:

    def test_small_run(self, gaussian_model):
        config = {'num_warmup': 20, 'num_samples': 40, 'num_thin': 4, 'refresh': 10,
                  'rng_seed': 11, 'use_double': True}
        reports = []

        result, draws, diag, diagnostics = run_from_config(
            config, RandomWalkMetropolis(0.8), gaussian_model, [0.0, 0.0],
            progress=reports.append,
        )

        assert result.phase is Phase.DONE
        assert result.iterations_completed == 60
        assert len(draws) == 10
        assert len(diag) == 10
        assert draws.params_array().dtype == np.float64
        assert [r.iteration for r in reports] == [0, 10, 20, 30, 40, 50]
        assert diagnostics['iterations_completed'] == 60
        assert diagnostics['backend']['process_count'] >= 1
        assert diagnostics['issues'] == []

    def test_same_seed_same_draws(self, gaussian_model):
        config = {'num_warmup': 5, 'num_samples': 20, 'rng_seed': 3, 'refresh': 0,
                  'use_double': True}

        _, first, _, _ = run_from_config(config, RandomWalkMetropolis(0.8), gaussian_model, jnp.zeros(2))
        _, second, _, _ = run_from_config(config, RandomWalkMetropolis(0.8), gaussian_model, jnp.zeros(2))

        np.testing.assert_array_equal(first.params_array(), second.params_array())

    def test_invalid_config_raises_before_running(self, gaussian_model):
        sampler = ShiftSampler()
        with pytest.raises(ValueError, match="Invalid chain configuration"):
            run_from_config({'num_warmup': 5, 'num_samples': 5, 'num_thin': 0},
                            sampler, gaussian_model, jnp.zeros(2))
        assert sampler.calls == 0

    def test_cancellation_through_config(self, gaussian_model):
        result, draws, _, diagnostics = run_from_config(
            {'num_warmup': 5, 'num_samples': 5, 'refresh': 0},
            ShiftSampler(), gaussian_model, jnp.zeros(2),
            callback=lambda phase, i: phase is not Phase.SAMPLING,
        )

        assert result.cancelled
        assert result.phase is Phase.SAMPLING
        assert result.iterations_completed == 5
        assert len(draws) == 0
        assert diagnostics['warnings'] == ["No draws were recorded"]
