"""
Registry of named sentence models.

Holds one NGramModel per corpus, keyed by a name derived from the corpus
filename. Populated from a directory at startup and shared by the REPL
and the HTTP server.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from gramwalk.errors import UnknownModelError, UsageError
from gramwalk.model import NGramModel


logger = logging.getLogger(__name__)


def model_name(filename: Union[str, Path]) -> str:
    """
    Derive a model name from a corpus filename by dropping its last extension.

    Example:
        >>> model_name("hugo.txt")
        'hugo'
        >>> model_name("kafka.short.txt")
        'kafka.short'
        >>> model_name("README")
        'README'
    """
    return Path(filename).stem


class ModelRegistry:
    """
    Named NGramModels.

    Models can be:
    - Built from every file in a corpus directory
    - Built from in-memory text
    - Added ready-made
    """

    def __init__(self):
        """Initialize an empty registry."""
        self.models: Dict[str, NGramModel] = {}
        self.metadata: Dict[str, dict] = {}

    def add_model(
        self,
        name: str,
        model: NGramModel,
        source: Optional[str] = None
    ) -> NGramModel:
        """
        Register a model under a name.

        Raises:
            ValueError: If the name is already taken
        """
        if name in self.models:
            raise ValueError(f"Model '{name}' already exists")

        if model.name is None:
            model.name = name

        self.models[name] = model
        self.metadata[name] = {
            "id": name,
            "n": model.n,
            "sentences": model.num_sentences,
            "nodes": model.num_nodes,
            "edges": model.num_edges,
            "source": source,
        }
        return model

    def build_model(self, name: str, text: str, n: int) -> NGramModel:
        """Build a model from text and register it."""
        if name in self.models:
            raise ValueError(f"Model '{name}' already exists")
        return self.add_model(name, NGramModel.from_text(text, n, name=name))

    def load_directory(self, directory: Union[str, Path], n: int, verbose: bool = False) -> List[str]:
        """
        Build one model per regular file in a directory.

        Files are visited in sorted order. A file that cannot be read is
        skipped with a warning; if two files map to the same name, the
        first one wins.

        Args:
            directory: Directory of corpus files
            n: Gram size for every model
            verbose: Print a line per model as it is constructed

        Returns:
            Names of the models added

        Raises:
            UsageError: If the directory does not exist or cannot be listed
        """
        directory = Path(directory)
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            raise UsageError(f"Cannot read directory {directory}: {e}") from e

        added = []
        for path in entries:
            if not path.is_file():
                logger.debug("Skipping non-regular file %s", path)
                continue

            name = model_name(path.name)
            if name in self.models:
                logger.warning("Model '%s' already loaded, skipping %s", name, path)
                continue

            if verbose:
                print(f"Constructing model {name}")

            try:
                model = NGramModel.from_file(path, n, name=name)
            except OSError as e:
                logger.warning("Skipping %s: %s", path, e)
                continue

            if model.is_empty:
                logger.warning("Model '%s' has no complete sentences", name)

            self.add_model(name, model, source=str(path))
            added.append(name)

        return added

    def get_model(self, name: str) -> NGramModel:
        """
        Get a model by name.

        Raises:
            UnknownModelError: If no model has that name
        """
        if name not in self.models:
            raise UnknownModelError(name, self.models.keys())
        return self.models[name]

    def has_model(self, name: str) -> bool:
        """Check if a model is registered."""
        return name in self.models

    def remove_model(self, name: str) -> None:
        """Remove and close a model. Unknown names are ignored."""
        if name in self.models:
            self.models.pop(name).close()
            del self.metadata[name]

    def names(self) -> List[str]:
        """Sorted model names."""
        return sorted(self.models)

    def list_models(self) -> List[dict]:
        """Metadata dicts of all registered models, sorted by name."""
        return [self.metadata[name] for name in self.names()]

    def close(self) -> None:
        """Close every model and empty the registry."""
        for name in list(self.models):
            self.remove_model(name)

    def __len__(self) -> int:
        return len(self.models)

    def __contains__(self, name: str) -> bool:
        return name in self.models
