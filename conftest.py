# Root conftest: load the harness plugin (options, fixtures, disabled-case summary)
# and pytester for the plugin's own tests
pytest_plugins = ("randomizer.harness.plugin", "pytester")
