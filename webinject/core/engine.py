import asyncio
import threading
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from colorama import Style

from webinject.checkers.predicates import FIRST, POLICIES, Predicate, evaluate
from webinject.core.dispatcher import BaseDispatcher, HttpDispatcher
from webinject.core.errors import (
    DispatchError, ScanConfigurationError, VerificationError,
)
from webinject.core.injection import ConcreteRequest, InjectionPoint, compose
from webinject.core.models import Attempt, Finding, ScanReport, ScanState
from webinject.generators.base import BaseGenerator, DEFAULT_SIZE
from webinject.parsers.request import RequestTemplate


PASSED = "passed"
FINDING = "finding"
INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class ScanConfig:
    workers: int = 1                        # 1 = sequential, replayable
    request_timeout: float = 10.0           # per-request deadline, seconds
    scan_timeout: Optional[float] = None    # stop issuing after this many seconds
    max_payloads: Optional[int] = None      # stop issuing after this many requests
    size: int = DEFAULT_SIZE
    seed: Optional[int] = 0
    policy: str = FIRST

    def validate(self):
        if self.workers < 1:
            raise ScanConfigurationError("workers must be >= 1")
        if self.request_timeout <= 0:
            raise ScanConfigurationError("request_timeout must be > 0")
        if self.scan_timeout is not None and self.scan_timeout <= 0:
            raise ScanConfigurationError("scan_timeout must be > 0")
        if self.max_payloads is not None and self.max_payloads < 1:
            raise ScanConfigurationError("max_payloads must be >= 1")
        if self.policy not in POLICIES:
            raise ScanConfigurationError(f"policy must be one of {POLICIES}")

    @property
    def bounded(self) -> bool:
        return self.max_payloads is not None or self.scan_timeout is not None


@dataclass(frozen=True)
class Scan:
    """
    Immutable scan description:

        Scan.inject(AlphanumSpecial())
            .into(parameter("id"))
            .into(parameter("direction"))
            .should(allow(400, 404, 204))
            .scan(template)
    """

    generator: Optional[BaseGenerator] = None
    points: Tuple[InjectionPoint, ...] = ()
    predicates: Tuple[Predicate, ...] = ()

    @classmethod
    def inject(cls, generator: BaseGenerator) -> "Scan":
        return cls(generator=generator)

    def into(self, point: InjectionPoint) -> "Scan":
        return replace(self, points=self.points + (point,))

    def should(self, predicate: Predicate) -> "Scan":
        return replace(self, predicates=self.predicates + (predicate,))

    def build(self, template: RequestTemplate, config: Optional[ScanConfig] = None,
              logger=None) -> "ScanSession":
        config = config or ScanConfig()
        config.validate()
        if self.generator is None:
            raise ScanConfigurationError("no generator to inject")
        if not self.points:
            raise ScanConfigurationError("no injection points registered")
        if not self.predicates:
            raise ScanConfigurationError("no predicates registered")
        if not template.method or not template.url:
            raise ScanConfigurationError("template needs a method and a URL")
        BaseGenerator.check_size(config.size)
        if not self.generator.finite and not config.bounded:
            raise ScanConfigurationError(
                f"{self.generator.name} never ends, set max_payloads or scan_timeout")

        resolved = template.resolve(config.size, config.seed)
        for point in self.points:
            point.check(resolved)
        return ScanSession(resolved, self.points, self.generator, self.predicates,
                           config, logger)

    def scan(self, template: RequestTemplate, config: Optional[ScanConfig] = None,
             dispatcher: Optional[BaseDispatcher] = None, logger=None) -> ScanReport:
        return self.build(template, config, logger).run(dispatcher)


inject = Scan.inject


class ScanSession:
    """
    One run of a scan: Built → Running → Completed | Cancelled.

    Attempts run concurrently (bounded by config.workers) and hand their
    outcome to a queue; a single collector drains it, so the findings list
    has exactly one writer.  Findings are ordered by completion.
    """

    def __init__(self, template: RequestTemplate, points: Tuple[InjectionPoint, ...],
                 generator: BaseGenerator, predicates: Tuple[Predicate, ...],
                 config: ScanConfig, logger=None):
        self.template = template
        self.points = points
        self.generator = generator
        self.predicates = predicates
        self.config = config
        self.logger = logger
        self.state = ScanState.BUILT
        self._findings: List[Finding] = []
        self._inconclusive: List[Attempt] = []
        self._attempts = 0
        self._cancel = threading.Event()

    @property
    def findings(self) -> Tuple[Finding, ...]:
        return tuple(self._findings)

    def cancel(self):
        """Stop issuing requests; safe to call from any thread."""
        self._cancel.set()

    def report(self) -> ScanReport:
        return ScanReport(self.state, tuple(self._findings),
                          tuple(self._inconclusive), self._attempts)

    def run(self, dispatcher: Optional[BaseDispatcher] = None) -> ScanReport:
        return asyncio.run(self.run_async(dispatcher))

    async def run_async(self, dispatcher: Optional[BaseDispatcher] = None) -> ScanReport:
        if self.state is not ScanState.BUILT:
            raise ScanConfigurationError(f"scan session already {self.state.value}")
        self.state = ScanState.RUNNING
        dispatcher = dispatcher or HttpDispatcher()

        if self.logger:
            where = ", ".join(p.label for p in self.points)
            self.logger.info(f"Scanning {self.template} with {self.generator.name} into {where}")

        try:
            async with dispatcher:
                reason = await self._loop(dispatcher)
        except BaseException:
            # findings so far stay readable through report()
            self.state = ScanState.CANCELLED
            raise

        self.state = ScanState.CANCELLED if reason == "cancelled" else ScanState.COMPLETED
        report = self.report()
        if self.logger:
            self.logger.debug(f"Stopped: {reason}")
            self.logger.summary(report)
        return report

    # ---------- loop ----------

    def _stop_reason(self, issued: int, started: float) -> Optional[str]:
        if self._cancel.is_set():
            return "cancelled"
        if self.config.max_payloads is not None and issued >= self.config.max_payloads:
            return "payload budget reached"
        if (self.config.scan_timeout is not None
                and asyncio.get_running_loop().time() - started >= self.config.scan_timeout):
            return "scan deadline reached"
        return None

    async def _loop(self, dispatcher: BaseDispatcher) -> str:
        started = asyncio.get_running_loop().time()
        queue: asyncio.Queue = asyncio.Queue()
        collector = asyncio.create_task(self._collect(queue))
        slots = asyncio.Semaphore(self.config.workers)
        tasks = set()
        issued = 0
        reason = "payloads exhausted"

        try:
            for concrete in compose(self.template, self.points, self.generator,
                                    self.config.size, self.config.seed):
                await slots.acquire()
                stop = self._stop_reason(issued, started)
                if stop:
                    slots.release()
                    reason = stop
                    break
                issued += 1
                task = asyncio.create_task(self._attempt(dispatcher, concrete, slots, queue))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
            if tasks:
                # in-flight requests finish or time out on their own
                results = await asyncio.gather(*tasks, return_exceptions=True)
                errors = [r for r in results if isinstance(r, BaseException)]
                if errors:
                    raise errors[0]
        finally:
            await queue.put(None)
            await collector
        return reason

    async def _attempt(self, dispatcher: BaseDispatcher, concrete: ConcreteRequest,
                       slots: asyncio.Semaphore, queue: asyncio.Queue):
        label = concrete.point.label
        payload = concrete.payload
        try:
            if self.logger and self.logger.verbose >= 2:
                self.logger.debug(
                    f"→ {concrete.request.method} {label}={self.logger.PAY}{payload!r}{Style.RESET_ALL}")
            try:
                response = await asyncio.wait_for(
                    dispatcher.send(concrete.request, self.config.request_timeout),
                    timeout=self.config.request_timeout)
            except asyncio.TimeoutError:
                await queue.put(Attempt(label, payload, INCONCLUSIVE,
                                        f"deadline of {self.config.request_timeout}s exceeded"))
                return
            except DispatchError as e:
                await queue.put(Attempt(label, payload, INCONCLUSIVE, str(e)))
                return

            try:
                findings = evaluate(self.predicates, payload, response, self.config.policy)
            except VerificationError as e:
                await queue.put(Attempt(label, payload, INCONCLUSIVE, str(e)))
                return

            findings = tuple(replace(f, point=label) for f in findings)
            await queue.put(Attempt(label, payload, FINDING if findings else PASSED,
                                    findings=findings))
        finally:
            slots.release()

    async def _collect(self, queue: asyncio.Queue):
        while True:
            attempt = await queue.get()
            if attempt is None:
                return
            self._attempts += 1
            if attempt.outcome == INCONCLUSIVE:
                self._inconclusive.append(attempt)
                if self.logger:
                    self.logger.inconclusive(attempt.point, attempt.payload, attempt.reason)
            for finding in attempt.findings:
                self._findings.append(finding)
                if self.logger:
                    self.logger.finding(finding)
