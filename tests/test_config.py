"""Tests for application settings."""
import unittest
import tempfile
import shutil
from pathlib import Path

from groupledger.config.settings import AppSettings, DEFAULT_ITEM_PATTERNS
from groupledger.utils.exceptions import ConfigError


class TestAppSettings(unittest.TestCase):
    """Test AppSettings loading and validation."""
    
    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.config_file = self.test_dir / "config.yaml"
    
    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)
    
    def test_defaults_without_file(self):
        settings = AppSettings.load(self.test_dir / "missing.yaml", environ={})
        
        self.assertEqual(settings.messages_sheet, "Messages")
        self.assertEqual(settings.spending_sheet, "Spending Analysis")
        self.assertEqual(settings.individual_sheet, "Individual Spending")
        self.assertTrue(settings.enable_spending_analysis)
        self.assertEqual(settings.retry_max_attempts, 3)
        self.assertEqual(settings.item_patterns, DEFAULT_ITEM_PATTERNS)
    
    def test_load_yaml(self):
        self.config_file.write_text(
            "chat:\n"
            "  target_conversation_id: 'abc@g.us'\n"
            "store:\n"
            "  workbook_path: '/tmp/ledger.xlsx'\n"
            "processing:\n"
            "  enable_spending_analysis: false\n"
            "retry:\n"
            "  max_attempts: 5\n"
            "  delay_seconds: 0.5\n"
            "extraction:\n"
            "  spending_keywords: [owed]\n",
            encoding="utf-8"
        )
        
        settings = AppSettings.load(self.config_file, environ={})
        
        self.assertEqual(settings.target_conversation_id, "abc@g.us")
        self.assertEqual(settings.workbook_path, "/tmp/ledger.xlsx")
        self.assertFalse(settings.enable_spending_analysis)
        self.assertEqual(settings.retry_max_attempts, 5)
        self.assertEqual(settings.retry_delay_seconds, 0.5)
        self.assertEqual(settings.spending_keywords, ["owed"])
        self.assertEqual(settings.messages_sheet, "Messages")
    
    def test_environment_overrides(self):
        self.config_file.write_text("chat:\n  target_conversation_id: 'from-file'\n", encoding="utf-8")
        environ = {
            "TARGET_GROUP_ID": "from-env@g.us",
            "EXCEL_FILE_PATH": "/data/out.xlsx",
            "ENABLE_SPENDING_ANALYSIS": "FALSE",
            "LOG_TO_FILE": "false",
            "PORT": "8080",
        }
        
        settings = AppSettings.load(self.config_file, environ=environ)
        
        self.assertEqual(settings.target_conversation_id, "from-env@g.us")
        self.assertEqual(settings.workbook_path, "/data/out.xlsx")
        self.assertFalse(settings.enable_spending_analysis)
        self.assertIsNone(settings.log_path)
        self.assertEqual(settings.server_port, 8080)
    
    def test_non_mapping_yaml_raises(self):
        self.config_file.write_text("- just\n- a list\n", encoding="utf-8")
        
        with self.assertRaises(ConfigError):
            AppSettings.load(self.config_file, environ={})
    
    def test_validate_config_valid(self):
        is_valid, message = AppSettings().validate()
        self.assertTrue(is_valid, message)
    
    def test_validate_config_missing_target(self):
        is_valid, message = AppSettings(target_conversation_id="").validate()
        self.assertFalse(is_valid)
        self.assertIn("conversation", message)
    
    def test_validate_config_bad_pattern(self):
        is_valid, message = AppSettings(number_patterns=["(\\d+"]).validate()
        self.assertFalse(is_valid)
        self.assertIn("Invalid pattern", message)
    
    def test_validate_item_pattern_groups(self):
        is_valid, message = AppSettings(item_patterns=[r"\d+"]).validate()
        self.assertFalse(is_valid)
        self.assertIn("groups", message)
    
    def test_validate_retry_attempts(self):
        is_valid, _ = AppSettings(retry_max_attempts=0).validate()
        self.assertFalse(is_valid)


if __name__ == "__main__":
    unittest.main()
