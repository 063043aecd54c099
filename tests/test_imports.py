def test_imports():
    import importlib

    # requests
    import requests

    assert getattr(requests, "__version__", None)

    # regex_download package and its Prefect entry points
    pkg = importlib.import_module("regex_download")
    assert pkg.__version__

    flow_module = importlib.import_module("regex_download.flows.regex_download_flow")
    assert callable(flow_module.run_regex_download_flow)
