"""
Basic tests for vSphere DRS VM Override

Tests basic functionality and imports.

Author: uldyssian-sh
License: MIT
"""

import os
import sys
import unittest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


class TestBasicFunctionality(unittest.TestCase):
    """Test basic functionality"""

    def test_package_import(self):
        """Test that the main package imports successfully"""
        try:
            import vsphere_drs_override
            self.assertTrue(True)
        except ImportError as e:
            self.fail(f"Failed to import vsphere_drs_override: {e}")

    def test_version_exists(self):
        """Test that version is defined"""
        import vsphere_drs_override
        self.assertIsInstance(vsphere_drs_override.__version__, str)
        self.assertEqual(vsphere_drs_override.get_version(), vsphere_drs_override.__version__)

    def test_get_info(self):
        """Test package information"""
        import vsphere_drs_override
        info = vsphere_drs_override.get_info()
        self.assertEqual(info["name"], "vSphere DRS VM Override")
        self.assertEqual(info["author"], "uldyssian-sh")

    def test_module_imports(self):
        """Test that every module imports successfully"""
        try:
            from vsphere_drs_override import checks, client, config, harness
            from vsphere_drs_override import logging_config, resource, server, structure, templates
            self.assertTrue(True)
        except ImportError as e:
            self.fail(f"Failed to import modules: {e}")

    def test_public_exports(self):
        """Test exported names resolve"""
        import vsphere_drs_override
        for name in vsphere_drs_override.__all__:
            self.assertTrue(hasattr(vsphere_drs_override, name), name)


if __name__ == '__main__':
    unittest.main()
