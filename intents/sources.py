"""
Configuration sources and the published corpus handle.

A ConfigurationSource provides intent and category definitions. The
CorpusHandle turns them into an IntentCorpus snapshot and publishes it by
replacing a single reference, so a scoring pass that already holds a snapshot
never sees a half-updated corpus.
"""

import json
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from pydantic import ValidationError

from .corpus import CorpusUnavailable, CorpusValidationError, IntentCorpus, TopicDefinition
from .defaults import get_default_categories, get_default_intents
from .models import CategoryDefinition, IntentDefinition
from .rules import RuleSyntaxError
from .schema import CorpusFile, dump_corpus, parse_intent, to_category_definition, to_intent_definition

logger = logging.getLogger(__name__)


@runtime_checkable
class ConfigurationSource(Protocol):
    """Protocol for intent configuration providers."""

    def load_intents(self) -> List[IntentDefinition]:
        """Return all intent definitions in corpus order."""
        ...

    def load_categories(self) -> List[CategoryDefinition]:
        """Return all category definitions in topic-resolution order."""
        ...

    def load(self) -> Tuple[List[IntentDefinition], List[CategoryDefinition]]:
        """Return intents and categories read from the same state of the source."""
        ...


class DefaultConfigurationSource:
    """The built-in corpus."""

    def load_intents(self) -> List[IntentDefinition]:
        return get_default_intents()

    def load_categories(self) -> List[CategoryDefinition]:
        return get_default_categories()

    def load(self) -> Tuple[List[IntentDefinition], List[CategoryDefinition]]:
        return self.load_intents(), self.load_categories()


class JsonConfigurationSource:
    """Corpus read from a JSON file on every load."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> CorpusFile:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CorpusUnavailable(f"Cannot read corpus file {self.path}: {e}") from e
        try:
            return CorpusFile.model_validate(raw)
        except ValidationError as e:
            raise CorpusValidationError([str(err["loc"]) + ": " + err["msg"] for err in e.errors()]) from e

    def _intents(self, parsed: CorpusFile) -> List[IntentDefinition]:
        return [to_intent_definition(intent) for intent in parsed.intents]

    def _categories(self, parsed: CorpusFile) -> List[CategoryDefinition]:
        try:
            return [to_category_definition(category) for category in parsed.categories]
        except RuleSyntaxError as e:
            raise CorpusValidationError([str(e)]) from e

    def load_intents(self) -> List[IntentDefinition]:
        return self._intents(self._read())

    def load_categories(self) -> List[CategoryDefinition]:
        return self._categories(self._read())

    def load(self) -> Tuple[List[IntentDefinition], List[CategoryDefinition]]:
        """Read the file once for both lists."""
        parsed = self._read()
        return self._intents(parsed), self._categories(parsed)


class IntentCatalog:
    """
    Editable in-memory configuration.

    Seeded from another source; edits take effect on the next
    CorpusHandle.reload().
    """

    def __init__(self, seed: Optional[ConfigurationSource] = None):
        seed = seed or DefaultConfigurationSource()
        intents, categories = seed.load()
        self._intents: List[IntentDefinition] = intents
        self._categories: List[CategoryDefinition] = categories
        self._lock = threading.Lock()

    def load_intents(self) -> List[IntentDefinition]:
        with self._lock:
            return list(self._intents)

    def load_categories(self) -> List[CategoryDefinition]:
        with self._lock:
            return list(self._categories)

    def load(self) -> Tuple[List[IntentDefinition], List[CategoryDefinition]]:
        with self._lock:
            return list(self._intents), list(self._categories)

    def get_intent(self, intent_id: str) -> Optional[IntentDefinition]:
        with self._lock:
            return next((i for i in self._intents if i.id == intent_id), None)

    def add_intent(self, intent: Union[IntentDefinition, Dict[str, Any]]) -> IntentDefinition:
        if isinstance(intent, dict):
            intent = parse_intent(intent)
        with self._lock:
            if any(existing.id == intent.id for existing in self._intents):
                raise ValueError(f"Intent already exists: {intent.id}")
            self._intents.append(intent)
        logger.info(f"Intent added: {intent.id} ({intent.topic})")
        return intent

    def update_intent(self, intent_id: str, **updates: Any) -> bool:
        """Replace fields of an intent. Returns False when it does not exist."""
        with self._lock:
            for index, intent in enumerate(self._intents):
                if intent.id == intent_id:
                    self._intents[index] = replace(intent, **updates)
                    logger.info(f"Intent updated: {intent_id} ({', '.join(updates)})")
                    return True
        return False

    def remove_intent(self, intent_id: str) -> bool:
        with self._lock:
            before = len(self._intents)
            self._intents = [i for i in self._intents if i.id != intent_id]
            removed = len(self._intents) < before
        if removed:
            logger.info(f"Intent removed: {intent_id}")
        return removed

    def export_config(self) -> Dict[str, Any]:
        with self._lock:
            return dump_corpus(list(self._intents), list(self._categories))

    def import_config(self, data: Dict[str, Any]):
        """Replace the whole catalog from the corpus file layout."""
        try:
            parsed = CorpusFile.model_validate(data)
            intents = [to_intent_definition(i) for i in parsed.intents]
            categories = [to_category_definition(c) for c in parsed.categories]
        except ValidationError as e:
            raise CorpusValidationError([str(err["loc"]) + ": " + err["msg"] for err in e.errors()]) from e
        except RuleSyntaxError as e:
            raise CorpusValidationError([str(e)]) from e
        with self._lock:
            self._intents = intents
            self._categories = categories
        logger.info(f"Catalog imported: {len(intents)} intents, {len(categories)} categories")


class CorpusHandle:
    """
    Versioned, swappable reference to the current corpus snapshot.

    Readers call current() once per operation and keep using that snapshot.
    """

    def __init__(self, source: ConfigurationSource):
        self.source = source
        self._snapshot: IntentCorpus = IntentCorpus.empty()
        self._has_good_snapshot = False
        self._version = 0
        self._reload_lock = threading.Lock()

    def current(self) -> IntentCorpus:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    @property
    def is_degraded(self) -> bool:
        """True while no corpus has ever loaded successfully."""
        return not self._has_good_snapshot

    def reload(self) -> IntentCorpus:
        """
        Rebuild the corpus from the source and publish it.

        On failure the last good snapshot stays published (or the empty
        corpus if none has loaded yet) and the error is logged.
        """
        with self._reload_lock:
            try:
                intents, categories = self.source.load()
                snapshot = IntentCorpus.build(intents, categories, version=self._version + 1)
            except CorpusUnavailable as e:
                if self._has_good_snapshot:
                    logger.warning(f"Corpus reload failed, keeping v{self._snapshot.version}: {e}")
                else:
                    logger.error(f"Corpus unavailable, serving fallback intent only: {e}")
                return self._snapshot

            self._version = snapshot.version
            self._snapshot = snapshot
            self._has_good_snapshot = True
            logger.info(f"Corpus v{snapshot.version} published")
            return snapshot

    def all_intents(self) -> List[IntentDefinition]:
        return self._snapshot.all_intents()

    def all_topics(self) -> List[TopicDefinition]:
        return self._snapshot.all_topics()


def build_source(corpus_path: Optional[str] = None) -> ConfigurationSource:
    """Configuration source for the configured corpus path."""
    if corpus_path:
        return JsonConfigurationSource(corpus_path)
    return DefaultConfigurationSource()
