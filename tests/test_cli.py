import csv

import openpyxl
import yaml
from click.testing import CliRunner

from budget_dashboard.cli import main as cli


def write_config(tmp_path, data_dir, budgets=None):
    cfg = {
        'output_dir': str(data_dir),
        'budgets': budgets if budgets is not None else {
            'Grocery': 320,
            'Dining': 150,
            'Gas': 120,
        },
    }
    path = tmp_path / 'config.yaml'
    with open(path, 'w') as f:
        yaml.safe_dump(cfg, f, sort_keys=False)
    return path


def write_transactions(path):
    rows = [
        ['date', 'store', 'amount', 'category', 'subcategory', 'split', 'note'],
        ['2024-02-18', 'City Power', '12.34', 'Home', 'Utilities', '', ''],
        ['2024-03-01', 'Aldi', '5.92', 'Grocery', 'Grocery', '', ''],
        ['2024-03-01', 'Target', '10.00', 'Gift', 'Gift', 'yes', 'card <half>'],
        ['2024-03-01', 'Target', '14.50', 'Shopping', 'Household', 'yes', ''],
        ['2024-03-09', 'Costco', '335.58', 'Grocery', 'Grocery', '', ''],
        ['2024-03-09', 'Diner', '22.10', 'Amusement', 'Dining', '', ''],
    ]
    with open(path, 'w', newline='') as f:
        csv.writer(f).writerows(rows)


def _setup(tmp_path, budgets=None):
    tx_file = tmp_path / 'transactions.csv'
    write_transactions(tx_file)
    cfg_path = write_config(tmp_path, tmp_path / 'data', budgets)
    return tx_file, cfg_path


def test_categories_command(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'categories',
        '--file', str(tx_file),
        '--start', '2024-03-01', '--end', '2024-03-31',
        '--category', 'Grocery', '--category', 'Gift',
    ])

    assert res.exit_code == 0, res.output
    lines = [l.strip() for l in res.output.splitlines()]
    assert lines[0] == 'Spending 2024-03-01 to 2024-03-31'
    assert lines[1].split() == ['Grocery', '341.50']
    assert lines[2].split() == ['Gift', '10.00']
    assert lines[3].split() == ['Total', '351.50']


def test_categories_command_defaults_to_full_range(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'categories', '--file', str(tx_file)])

    assert res.exit_code == 0, res.output
    assert 'Spending 2024-02-18 to 2024-03-09' in res.output
    assert 'Home' in res.output


def test_categories_command_rejects_reversed_range(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'categories', '--file', str(tx_file),
        '--start', '2024-03-31', '--end', '2024-03-01',
    ])

    assert res.exit_code == 2
    assert 'after end date' in res.output


def test_budget_command(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'budget', '--file', str(tx_file), '--month', '2024-03',
    ])

    assert res.exit_code == 0, res.output
    assert 'Budget 2024-03' in res.output
    grocery = next(l for l in res.output.splitlines() if 'Grocery' in l)
    assert '341.50' in grocery
    assert '107%' in grocery
    assert '-21.50' in grocery
    assert grocery.endswith('Over Budget')
    dining = next(l for l in res.output.splitlines() if 'Dining' in l)
    assert dining.endswith('On Track')
    assert 'Gas' not in res.output

    res_all = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'budget', '--file', str(tx_file), '--month', '2024-03', '--all',
    ])
    assert res_all.exit_code == 0, res_all.output
    assert 'Gas' in res_all.output


def test_budget_command_bad_month(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'budget', '--file', str(tx_file), '--month', 'March',
    ])

    assert res.exit_code == 2
    assert 'YYYY-MM' in res.output


def test_budget_command_without_budgets(tmp_path):
    tx_file, cfg_path = _setup(tmp_path, budgets={})

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'budget', '--file', str(tx_file), '--month', '2024-03',
    ])

    assert res.exit_code == 0, res.output
    assert 'No budgets configured.' in res.output


def test_report_csv_output(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'report', '--file', str(tx_file),
        '--month', '2024-03', '--output', 'csv',
    ])

    assert res.exit_code == 0, res.output
    data_dir = tmp_path / 'data'
    with open(data_dir / 'Categories2024-03.csv') as f:
        cats = list(csv.reader(f))
    assert cats[0] == ['category', 'total']
    assert cats[1] == ['Grocery', '341.50']
    assert [r[0] for r in cats[1:]] == ['Grocery', 'Amusement', 'Shopping', 'Gift']

    with open(data_dir / 'Budget2024-03.csv') as f:
        budget = list(csv.DictReader(f))
    assert [r['subcategory'] for r in budget] == ['Grocery', 'Dining', 'Gas']
    assert budget[0]['status'] == 'Over Budget'
    assert budget[2]['total_spent'] == '0.00'

    with open(data_dir / 'Transactions2024-03.csv') as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 5
    assert all(r['date'].startswith('2024-03') for r in rows)


def test_report_excel_output(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'report', '--file', str(tx_file),
        '--month', '2024-03', '--output', 'excel',
    ])

    assert res.exit_code == 0, res.output
    out_xlsx = tmp_path / 'data' / 'Dashboard2024-03.xlsx'
    assert out_xlsx.exists()
    wb = openpyxl.load_workbook(out_xlsx, data_only=True)
    assert wb.sheetnames == ['Categories', 'Budget', 'Transactions']

    cat_ws = wb['Categories']
    assert cat_ws['A1'].value == 'category'
    assert cat_ws['A2'].value == 'Grocery'
    assert cat_ws['B2'].value == 341.5

    budget_ws = wb['Budget']
    assert budget_ws['F1'].value == 'status'
    assert budget_ws['F2'].value == 'Over Budget'
    assert budget_ws['D2'].value == 107

    tx_ws = wb['Transactions']
    assert tx_ws.max_row == 6


def test_report_html_output_escapes_text(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'report', '--file', str(tx_file), '--month', '2024-03',
    ])

    assert res.exit_code == 0, res.output
    html = (tmp_path / 'data' / 'Dashboard2024-03.html').read_text()
    assert 'Over Budget' in html
    assert "class='over' style='width:100%'" in html
    assert 'card &lt;half&gt;' in html
    assert '<half>' not in html


def test_validate_command(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)
    with open(tx_file, 'a', newline='') as f:
        csv.writer(f).writerow(['2024-03-10', 'Petco', '25.00', 'Pets', 'Food', '', ''])

    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'validate', '--file', str(tx_file)])

    assert res.exit_code == 1
    assert "unknown category 'Pets'" in res.output
    assert '6 valid, 1 flagged.' in res.output


def test_validate_command_clean_file(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'validate', '--file', str(tx_file)])

    assert res.exit_code == 0, res.output
    assert '6 valid, 0 flagged.' in res.output


def test_missing_default_transactions_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg_path = write_config(tmp_path, tmp_path / 'data')

    res = CliRunner().invoke(cli, ['--config', str(cfg_path), 'categories'])

    assert res.exit_code == 1
    assert 'Transaction file not found' in res.output


def test_categories_command_drill_and_by_month(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)
    with open(tx_file, 'a', newline='') as f:
        csv.writer(f).writerow(['2024-03-12', 'Cafe', '4.25', 'Amusement', 'Coffee', '', ''])

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'categories', '--file', str(tx_file),
        '--start', '2024-02-01', '--end', '2024-03-31',
        '--drill', 'Amusement', '--by-month',
    ])

    assert res.exit_code == 0, res.output
    lines = [l.strip() for l in res.output.splitlines()]
    drill_at = lines.index('Amusement by subcategory')
    assert lines[drill_at + 1].split() == ['Dining', '22.10']
    assert lines[drill_at + 2].split() == ['Coffee', '4.25']

    month_at = lines.index('By month')
    monthly = [l.split() for l in lines[month_at + 1:]]
    assert monthly[0] == ['2024-02', 'Home', '12.34']
    assert ['2024-03', 'Amusement', '26.35'] in monthly
    assert ['2024-03', 'Grocery', '341.50'] in monthly


def test_categories_command_rejects_unknown_drill_category(tmp_path):
    tx_file, cfg_path = _setup(tmp_path)

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'categories', '--file', str(tx_file), '--drill', 'Pets',
    ])

    assert res.exit_code == 2
    assert "unknown category 'Pets'" in res.output


def test_report_keeps_budget_config_order(tmp_path):
    tx_file = tmp_path / 'transactions.csv'
    write_transactions(tx_file)
    cfg_path = write_config(tmp_path, tmp_path / 'data', {'Gas': 120, 'Grocery': 320, 'Dining': 150})

    res = CliRunner().invoke(cli, [
        '--config', str(cfg_path), 'report', '--file', str(tx_file),
        '--month', '2024-03', '--output', 'csv',
    ])

    assert res.exit_code == 0, res.output
    with open(tmp_path / 'data' / 'Budget2024-03.csv') as f:
        budget = list(csv.DictReader(f))
    assert [r['subcategory'] for r in budget] == ['Gas', 'Grocery', 'Dining']
