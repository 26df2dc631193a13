"""
Tests for scan configuration.
"""

import pytest
import yaml

from sparsesim.config import (
    ConfigManager,
    ScanConfig,
    create_default_config_file,
)
from sparsesim.core.errors import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    for suffix in ConfigManager.ENV_OVERRIDES:
        monkeypatch.delenv(f"SPARSESIM_{suffix}", raising=False)
    return monkeypatch


class TestScanConfig:
    """Validation and serialization."""
    
    def test_defaults(self):
        config = ScanConfig()
        
        assert config.k == 50
        assert config.limit is None
        assert config.workers is None
        assert config.use_processes is False
        assert config.tie_break == "legacy"
        assert (config.id_field, config.indices_field, config.values_field) == (
            "pid", "features", "scores"
        )
    
    @pytest.mark.parametrize("kwargs, key", [
        ({"k": 0}, "k"),
        ({"k": "50"}, "k"),
        ({"limit": -1}, "limit"),
        ({"workers": 0}, "workers"),
        ({"chunk_size": 0}, "chunk_size"),
        ({"tie_break": "coin-flip"}, "tie_break"),
        ({"log_level": "LOUD"}, "log_level"),
    ])
    def test_validation(self, kwargs, key):
        with pytest.raises(ConfigError) as exc_info:
            ScanConfig(**kwargs)
        
        assert exc_info.value.key == key
    
    def test_normalizes_values(self):
        config = ScanConfig(tie_break="LOWEST_ID", log_level="debug")
        
        assert config.tie_break == "lowest-id"
        assert config.log_level == "DEBUG"
    
    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigError, match="unknown configuration key"):
            ScanConfig.from_dict({"k": 5, "cap": 10})
    
    def test_replace_ignores_none(self):
        config = ScanConfig(k=10, limit=3).replace(k=None, limit=5, workers=2)
        
        assert config.k == 10
        assert config.limit == 5
        assert config.workers == 2
    
    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "scan.yml"
        ScanConfig(k=7, tie_break="lowest-id").save_to_file(path)
        
        loaded = ScanConfig.load_from_file(path)
        assert loaded == ScanConfig(k=7, tie_break="lowest-id")
    
    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ScanConfig.load_from_file(tmp_path / "missing.yml")
    
    def test_load_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        
        assert ScanConfig.load_from_file(path) == ScanConfig()
    
    def test_load_non_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n")
        
        with pytest.raises(ConfigError, match="must contain a mapping"):
            ScanConfig.load_from_file(path)
    
    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("k: [1, 2\n")
        
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ScanConfig.load_from_file(path)


class TestConfigManager:
    """File discovery and environment overrides."""
    
    def test_defaults_without_file(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        manager = ConfigManager()
        
        assert manager.load() == ScanConfig()
    
    def test_loads_file(self, tmp_path, clean_env):
        path = tmp_path / "scan.yml"
        path.write_text(yaml.safe_dump({"k": 12, "workers": 3}))
        
        config = ConfigManager(path).load()
        assert config.k == 12
        assert config.workers == 3
    
    def test_env_overrides_file(self, tmp_path, clean_env):
        path = tmp_path / "scan.yml"
        path.write_text(yaml.safe_dump({"k": 12, "limit": 100}))
        clean_env.setenv("SPARSESIM_K", "4")
        clean_env.setenv("SPARSESIM_TIE_BREAK", "lowest-id")
        
        config = ConfigManager(path).load()
        assert config.k == 4
        assert config.limit == 100
        assert config.tie_break == "lowest-id"
    
    def test_invalid_env_value(self, tmp_path, clean_env):
        (tmp_path / "scan.yml").write_text("k: 5\n")
        clean_env.setenv("SPARSESIM_WORKERS", "many")
        
        with pytest.raises(ConfigError, match="SPARSESIM_WORKERS") as exc_info:
            ConfigManager(tmp_path / "scan.yml").load()
        assert exc_info.value.key == "workers"
    
    def test_load_is_cached(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        manager = ConfigManager()
        
        assert manager.load() is manager.load()
    
    def test_missing_explicit_file(self, tmp_path, clean_env):
        """Test that a named config file must exist."""
        with pytest.raises(ConfigError, match="not found"):
            ConfigManager(tmp_path / "absent.yml").load()
    
    @pytest.mark.parametrize("raw, expected", [
        ("1", True), ("true", True), ("Yes", True), ("on", True),
        ("0", False), ("false", False), ("NO", False), ("off", False),
    ])
    def test_processes_env_override(self, tmp_path, clean_env, raw, expected):
        """Test that SPARSESIM_PROCESSES sets the pool kind."""
        clean_env.chdir(tmp_path)
        clean_env.setenv("SPARSESIM_PROCESSES", raw)
        
        assert ConfigManager().load().use_processes is expected
    
    def test_invalid_processes_env_value(self, tmp_path, clean_env):
        clean_env.chdir(tmp_path)
        clean_env.setenv("SPARSESIM_PROCESSES", "sometimes")
        
        with pytest.raises(ConfigError, match="SPARSESIM_PROCESSES") as exc_info:
            ConfigManager().load()
        assert exc_info.value.key == "use_processes"
    
    def test_save_and_create_default(self, tmp_path, clean_env):
        path = create_default_config_file(tmp_path / "default.yml")
        assert ScanConfig.load_from_file(path) == ScanConfig()
        
        manager = ConfigManager(path)
        manager.save(ScanConfig(k=3))
        assert ScanConfig.load_from_file(path).k == 3
