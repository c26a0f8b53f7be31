"""
Model persistence and metadata storage for trained HMM estimators.

This module handles serialization/deserialization of estimators using joblib
and manages JSON metadata storage with training statistics and hyperparameters.
"""

import json
import joblib
from pathlib import Path
from typing import Dict, Any, Tuple, List, Optional
from datetime import datetime
import numpy as np

from ..hmm.model import DiscreteHMM
from ..exceptions import PersistenceError, StochasticMatrixError
from ..logger import get_logger

logger = get_logger(__name__)


class ModelPersistence:
    """
    Handles model serialization, deserialization, and metadata management.

    Each model is stored as ``<name>.pkl`` next to ``<name>_meta.json``.
    """

    def __init__(self, models_dir: str = "models"):
        """
        Initialize ModelPersistence with target directory.

        Args:
            models_dir: Directory to store models and metadata (default: "models")
        """
        self.models_dir = Path(models_dir)
        self.models_dir.mkdir(parents=True, exist_ok=True)

        logger.debug(f"ModelPersistence initialized: {self.models_dir}")

    def _paths(self, name: str) -> Tuple[Path, Path]:
        safe_name = self._sanitize_filename(name)
        return (self.models_dir / f"{safe_name}.pkl",
                self.models_dir / f"{safe_name}_meta.json")

    def build_metadata(self, model: DiscreteHMM,
                       extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Collect training statistics and hyperparameters of an estimator.

        Args:
            model: Estimator, trained or not
            extra: Additional user metadata merged into the result

        Returns:
            Metadata dictionary (may contain numpy values)
        """
        history = model.log_likelihood_history
        metadata = {
            'status': model.status.value,
            'converged': model.converged,
            'iterations': model.iterations,
            'final_log_likelihood': history[-1] if history else None,
            'log_likelihood_history': list(history),
            'sequence_length': model.T,
            'hyperparameters': {
                'n_states': model.n_states,
                'n_symbols': model.n_symbols,
                'max_iter': model.max_iter,
                'epsilon': model.epsilon,
                'seed': model.seed
            },
            'parameters': {
                'pi': model.pi,
                'A': model.A,
                'B': model.B
            }
        }
        if extra:
            metadata.update(extra)
        return metadata

    def save_model(self,
                   name: str,
                   model: DiscreteHMM,
                   metadata: Optional[Dict[str, Any]] = None,
                   overwrite: bool = False) -> Tuple[str, str]:
        """
        Save estimator and metadata to disk.

        Args:
            name: Model name
            model: DiscreteHMM estimator
            metadata: Extra metadata to store with the training summary
            overwrite: Whether to overwrite existing files (default: False)

        Returns:
            Tuple of (model_path, metadata_path) for saved files

        Raises:
            PersistenceError: If saving fails or files exist without overwrite
        """
        model_path, metadata_path = self._paths(name)

        if not overwrite:
            if model_path.exists():
                raise PersistenceError(f"Model file already exists: {model_path}")
            if metadata_path.exists():
                raise PersistenceError(f"Metadata file already exists: {metadata_path}")

        serializable_metadata = self._prepare_metadata_for_serialization(
            self.build_metadata(model, metadata)
        )
        serializable_metadata.update({
            'name': name,
            'saved_at': datetime.now().isoformat(),
            'model_file': model_path.name,
            'metadata_file': metadata_path.name,
            'model_class': model.__class__.__name__
        })

        try:
            logger.debug(f"Saving model to: {model_path}")
            joblib.dump(model, model_path, compress=3)

            logger.debug(f"Saving metadata to: {metadata_path}")
            with open(metadata_path, 'w', encoding='utf-8') as f:
                json.dump(serializable_metadata, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save model {name}: {e}") from e

        logger.info(f"Saved model {name}: {model_path}")

        return str(model_path), str(metadata_path)

    def load_model(self, name: str) -> Tuple[DiscreteHMM, Dict[str, Any]]:
        """
        Load estimator and metadata from disk.

        Args:
            name: Model name

        Returns:
            Tuple of (model, metadata)

        Raises:
            PersistenceError: If loading fails, files are missing or the
                stored model is inconsistent with its metadata
        """
        model_path, metadata_path = self._paths(name)

        if not model_path.exists():
            raise PersistenceError(f"Model file not found: {model_path}")
        if not metadata_path.exists():
            raise PersistenceError(f"Metadata file not found: {metadata_path}")

        try:
            logger.debug(f"Loading model from: {model_path}")
            model = joblib.load(model_path)

            logger.debug(f"Loading metadata from: {metadata_path}")
            with open(metadata_path, 'r', encoding='utf-8') as f:
                metadata = json.load(f)
        except (OSError, EOFError, ValueError) as e:
            raise PersistenceError(f"Failed to load model {name}: {e}") from e

        if not isinstance(model, DiscreteHMM):
            raise PersistenceError(f"Loaded object is not a DiscreteHMM: {type(model)}")

        self._validate_model_metadata_consistency(model, metadata)

        logger.info(f"Loaded model {name}")

        return model, metadata

    def list_available_models(self) -> List[Dict[str, Any]]:
        """
        List all stored models with their basic information.

        Returns:
            List of dictionaries with model information
        """
        models_info = []

        for model_file in sorted(self.models_dir.glob("*.pkl")):
            name = model_file.stem
            metadata_file = self.models_dir / f"{name}_meta.json"

            info = {
                'name': name,
                'model_file': str(model_file),
                'metadata_file': str(metadata_file),
                'metadata_exists': metadata_file.exists(),
                'model_size_kb': model_file.stat().st_size / 1024
            }

            if metadata_file.exists():
                try:
                    with open(metadata_file, 'r', encoding='utf-8') as f:
                        metadata = json.load(f)
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning(f"Unreadable metadata {metadata_file}: {e}")
                    info['metadata_error'] = True
                else:
                    hyper = metadata.get('hyperparameters', {})
                    info.update({
                        'n_states': hyper.get('n_states'),
                        'n_symbols': hyper.get('n_symbols'),
                        'converged': metadata.get('converged'),
                        'iterations': metadata.get('iterations'),
                        'final_log_likelihood': metadata.get('final_log_likelihood'),
                        'saved_at': metadata.get('saved_at')
                    })

            models_info.append(info)

        return models_info

    def delete_model(self, name: str) -> bool:
        """
        Delete model and metadata files.

        Returns:
            True if any file was deleted, False otherwise
        """
        deleted_files = []
        for path in self._paths(name):
            if path.exists():
                path.unlink()
                deleted_files.append(str(path))

        if deleted_files:
            logger.info(f"Deleted files for model {name}: {deleted_files}")
            return True

        logger.warning(f"No files found to delete for model: {name}")
        return False

    def _sanitize_filename(self, name: str) -> str:
        """
        Sanitize model name for use as filename.

        Args:
            name: Original model name

        Returns:
            Sanitized filename-safe string
        """
        safe_name = name.replace(' ', '_').replace('-', '_')
        safe_name = ''.join(c for c in safe_name if c.isalnum() or c == '_')
        safe_name = safe_name.lower()

        if not safe_name:
            raise PersistenceError(f"Model name {name!r} has no usable characters")

        return safe_name

    def _prepare_metadata_for_serialization(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Convert numpy arrays and scalars to JSON-serializable values.
        """
        serializable = {}

        for key, value in metadata.items():
            if isinstance(value, np.ndarray):
                serializable[key] = value.tolist()
            elif isinstance(value, np.integer):
                serializable[key] = int(value)
            elif isinstance(value, np.floating):
                serializable[key] = float(value)
            elif isinstance(value, dict):
                serializable[key] = self._prepare_metadata_for_serialization(value)
            elif isinstance(value, (list, tuple)):
                serializable[key] = [
                    item.tolist() if isinstance(item, np.ndarray) else
                    int(item) if isinstance(item, np.integer) else
                    float(item) if isinstance(item, np.floating) else
                    item for item in value
                ]
            else:
                serializable[key] = value

        return serializable

    def _validate_model_metadata_consistency(self, model: DiscreteHMM, metadata: Dict[str, Any]):
        """
        Validate that a loaded model is consistent with its metadata.

        Raises:
            PersistenceError: If inconsistencies are found
        """
        hyper = metadata.get('hyperparameters', {})

        if hyper.get('n_states') != model.n_states:
            raise PersistenceError(
                f"Model n_states mismatch: metadata={hyper.get('n_states')}, "
                f"model={model.n_states}"
            )

        if hyper.get('n_symbols') != model.n_symbols:
            raise PersistenceError(
                f"Model n_symbols mismatch: metadata={hyper.get('n_symbols')}, "
                f"model={model.n_symbols}"
            )

        try:
            model.validate_stochastic_matrices()
        except StochasticMatrixError as e:
            raise PersistenceError(f"Loaded model has invalid stochastic matrices: {e}") from e
