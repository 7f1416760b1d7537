"""
Тесты параметров запуска сервера
"""
import config
from run import prod_server_options


def test_prod_server_runs_single_worker():
    options = prod_server_options()
    assert options["workers"] == 1
    assert options["host"] == config.HOST
    assert options["port"] == config.PORT


def test_prod_server_overrides():
    options = prod_server_options("0.0.0.0", 9000)
    assert options["host"] == "0.0.0.0"
    assert options["port"] == 9000
    assert options["workers"] == 1
