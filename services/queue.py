"""
Queue Processor

Polls for pending recipe submissions and runs them through the extraction
pipeline on a bounded worker pool. Each item ends as saved, linked,
placeholder or failed; failures stay pending until the attempt ceiling.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import date
from typing import Optional

from constants import DEFAULT_RECIPE_CATEGORY
from models import RecipeData

from .cache import invalidate_recipe_caches
from .completeness import is_complete
from .errors import ExtractionError, RecipeAppError
from .extraction import recipe_link

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobResult:
    """Outcome of one queue item. error is None on success."""
    ok: bool
    outcome: str
    slug: str = ''
    error: Optional[str] = None

    @classmethod
    def success(cls, outcome, slug=''):
        return cls(ok=True, outcome=outcome, slug=slug)

    @classmethod
    def failure(cls, error, outcome='failed'):
        return cls(ok=False, outcome=outcome, error=str(error))


class QueueProcessor:
    """
    Timer-driven batch runner.

    Batches never overlap: the loop waits for every job of a batch before
    sleeping until the next tick. stop() is observed between batches only.
    """

    def __init__(self, app, repository, extractor, cache=None, poll_interval=60,
                 batch_size=5, concurrency=4):
        self.app = app
        self.repository = repository
        self.extractor = extractor
        self.cache = cache
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.concurrency = concurrency
        self._stop_event = threading.Event()
        self._thread = None
        self._executor = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the scheduler thread. Processes immediately, then every tick."""
        if self.running:
            return
        self._stop_event.clear()
        self._executor = ThreadPoolExecutor(
            max_workers=self.concurrency, thread_name_prefix='queue-worker'
        )
        self._thread = threading.Thread(target=self.run, name='queue-processor', daemon=True)
        self._thread.start()

    def stop(self, timeout=None):
        """Signal the loop to stop and wait for the current batch to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def join(self, timeout=None):
        """Block until the scheduler thread exits or timeout passes."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def run(self):
        logger.info("Queue processor started")
        while True:
            self.process_batch_safely()
            if self._stop_event.wait(self.poll_interval):
                break
        logger.info("Queue processor stopping")

    def process_batch_safely(self):
        """Run one batch; a failing batch is logged and never ends the loop."""
        try:
            return self.process_batch()
        except Exception:
            logger.exception("Queue batch failed")
            return []

    def process_batch(self):
        """
        Claim up to batch_size pending items and process them concurrently.

        Returns:
            list of JobResult, in queue order
        """
        with self.app.app_context():
            jobs = self.repository.fetch_pending_queue(self.batch_size)

        if not jobs:
            logger.debug("Queue: empty")
            return []

        logger.info(f"Queue: processing {len(jobs)} item(s) with concurrency={self.concurrency}")
        if self._executor is not None:
            return self._dispatch(self._executor, jobs)
        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix='queue-worker') as executor:
            return self._dispatch(executor, jobs)

    def _dispatch(self, executor, jobs):
        futures = [executor.submit(self._run_job, job) for job in jobs]
        wait(futures)
        return [future.result() for future in futures]

    def _run_job(self, job):
        """Worker entry point. Any exception becomes a failed JobResult here."""
        with self.app.app_context():
            try:
                result = self.process_item(job)
            except Exception as e:
                logger.exception(f"Queue item {job.id} crashed")
                result = JobResult.failure(f"queue item {job.id} failed: {e}", outcome='crashed')
            self._finalize(job, result)
            return result

    def _finalize(self, job, result):
        if result.ok:
            invalidate_recipe_caches(self.cache, job.username, result.slug)
        try:
            self.repository.mark_queue_item_result(job.id, None if result.ok else result.error)
        except RecipeAppError as e:
            logger.error(f"Queue: failed to finalize item {job.id}: {e}")
            return
        logger.info(f"Queue: item {job.id} {result.outcome}" + (f" ({result.error})" if result.error else ''))

    def process_item(self, job):
        """
        Process one queue item.

        Returns:
            JobResult
        """
        if not job.username:
            logger.warning(f"Queue item {job.id} missing username")
            return JobResult.failure(f"queue item {job.id} missing username", outcome='missing-user')

        logger.info(f"Queue: processing item {job.id} for user {job.username}")
        try:
            linked, slug = self.repository.link_recipe_if_exists(job.username, job.url)
        except RecipeAppError as e:
            return JobResult.failure(e)
        if linked:
            return JobResult.success('linked', slug)

        try:
            recipe, slug = self.extractor.extract(job.url)
        except ExtractionError as e:
            logger.warning(f"Queue: item {job.id} failed to fetch recipe: {e}")
            placeholder = self.build_placeholder(job.url)
            return self._save(job, placeholder, 'placeholder', cause=e)

        if not is_complete(recipe):
            logger.info(f"Queue: item {job.id} recipe incomplete; saving minimal placeholder")
            placeholder = self.build_placeholder(
                job.url, title=recipe.title, slug=slug,
                image=recipe.image, category=recipe.category,
            )
            return self._save(job, placeholder, 'placeholder')

        return self._save(job, recipe, 'saved')

    def build_placeholder(self, url, title='', slug='', image='', category=''):
        """Minimal recipe carrying whatever was extracted plus the source URL."""
        if not title or not slug:
            title, slug = self.extractor.fallback_title_and_slug(url)
        category = category or DEFAULT_RECIPE_CATEGORY
        return RecipeData(
            title=title,
            category=category,
            image=image or '',
            original_url=url,
            link=recipe_link(category, slug),
            date=date.today().isoformat(),
            slug=slug,
        )

    def _save(self, job, recipe, outcome, cause=None):
        try:
            slug = self.repository.save_recipe_for_user(job.username, recipe.slug, recipe)
        except RecipeAppError as e:
            logger.error(f"Queue: item {job.id} failed to save recipe: {e}")
            if cause is not None:
                return JobResult.failure(f"{cause}; placeholder save failed: {e}")
            return JobResult.failure(e)
        return JobResult.success(outcome, slug)
