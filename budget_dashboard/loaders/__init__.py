from importlib import import_module
from pathlib import Path


def get_loader(file_path, config):
    suffix = Path(file_path).suffix.lower()
    loader_path = config['transaction_loaders'].get(suffix)
    if loader_path is None:
        raise ValueError(f"No loader configured for '{suffix}' files: {file_path}")
    module_name, cls_name = loader_path.rsplit('.', 1)
    mod = import_module(module_name)
    return getattr(mod, cls_name)()


def load_transactions(paths, config):
    txs = []
    for path in paths:
        txs.extend(get_loader(path, config).load(str(path)))
    return txs
