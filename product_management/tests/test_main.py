"""
Tests for the command line interface.
"""
import io
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from product_management.main import main
from product_management.storage.file_store import load_catalog


class TestCommandLine(unittest.TestCase):
    """Commands run end to end against a temporary data file."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.data_file = str(Path(self.temp_dir.name) / 'products.dat')

    def tearDown(self):
        self.temp_dir.cleanup()

    def run_cli(self, *argv):
        """Run a command and return (exit status, stdout, stderr)."""
        with patch('sys.stdout', new_callable=io.StringIO) as out, \
                patch('sys.stderr', new_callable=io.StringIO) as err:
            status = main(['--data-file', self.data_file] + list(argv))
        return status, out.getvalue(), err.getvalue()

    def populate(self):
        self.assertEqual(self.run_cli('add-category', 'Hardware')[0], 0)
        self.assertEqual(self.run_cli('add-subgroup', '1', 'Hand Tools')[0], 0)
        self.assertEqual(self.run_cli('add-product', '1', 'HT-1', 'Claw Hammer', '15.0', '4')[0], 0)
        self.assertEqual(self.run_cli('add-product', '1', 'HT-2', 'Hand Saw', '25.0', '0')[0], 0)

    def test_mutating_commands_save_the_store(self):
        self.populate()

        snapshot = load_catalog(self.data_file)
        self.assertEqual(snapshot.next_product_id, 3)
        self.assertEqual(snapshot.categories[0].total_product_count(), 2)

    def test_list_products(self):
        self.populate()
        status, out, _ = self.run_cli('products')
        self.assertEqual(status, 0)
        self.assertIn('Claw Hammer', out)
        self.assertIn('15.00', out)
        self.assertIn('Total: 2', out)

    def test_search_commands(self):
        self.populate()
        _, out, _ = self.run_cli('search-name', 'SAW')
        self.assertIn('Hand Saw', out)
        self.assertNotIn('Claw Hammer', out)

        _, out, _ = self.run_cli('search-price', '10', '20')
        self.assertIn('Claw Hammer', out)
        self.assertNotIn('Hand Saw', out)

        _, out, _ = self.run_cli('low-stock', '--threshold', '1')
        self.assertIn('Hand Saw', out)

    def test_stats(self):
        self.populate()
        status, out, _ = self.run_cli('stats')
        self.assertEqual(status, 0)
        self.assertIn('Average Price: 20.00', out)
        self.assertIn('Total Value: 60.00', out)

    def test_update_and_remove(self):
        self.populate()
        self.assertEqual(self.run_cli('update-product', '1', '--quantity', '9')[0], 0)
        self.assertEqual(self.run_cli('remove-product', '2')[0], 0)

        product = load_catalog(self.data_file).categories[0].find_product_by_id(1)
        self.assertEqual(product.quantity, 9)
        self.assertIsNone(load_catalog(self.data_file).categories[0].find_product_by_id(2))

    def test_rejected_update_fails(self):
        self.populate()
        status, _, err = self.run_cli('update-product', '1', '--price', '-3')
        self.assertEqual(status, 1)
        self.assertIn('Rejected update', err)

    def test_missing_entity_fails(self):
        status, _, err = self.run_cli('remove-category', '5')
        self.assertEqual(status, 1)
        self.assertIn('Category 5 not found', err)

    def test_corrupt_data_file_fails(self):
        Path(self.data_file).write_bytes(b'not a catalog')
        status, _, err = self.run_cli('categories')
        self.assertEqual(status, 1)
        self.assertIn('could not load', err)

    def test_check_and_report(self):
        self.populate()
        status, out, _ = self.run_cli('check')
        self.assertEqual(status, 0)
        self.assertIn('No problems found', out)

        report_file = Path(self.temp_dir.name) / 'report.txt'
        self.assertEqual(self.run_cli('report', '--output', str(report_file))[0], 0)
        self.assertIn('Claw Hammer', report_file.read_text(encoding='utf-8'))

        _, out, _ = self.run_cli('report', '--csv')
        self.assertTrue(out.startswith('product_id,code,name'))

    def test_no_command_prints_help(self):
        status, out, _ = self.run_cli()
        self.assertEqual(status, 1)
        self.assertIn('usage', out)


if __name__ == '__main__':
    unittest.main()
