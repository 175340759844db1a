"""A catalog of resources and the order to apply them in.

Examples:
---------

>>> from sysdecl.resources import Service, UnitFile
>>> catalog = Catalog()
>>> unit = catalog.add(UnitFile('db_backup.timer'))
>>> service = catalog.add(Service('db_backup.timer'))
>>> catalog.before(unit, service)
>>> [resource.ref for resource in catalog.ordered()]
['UnitFile[db_backup.timer]', 'Service[db_backup.timer]']
"""
import heapq
import logging
from graphlib import CycleError, TopologicalSorter

from .errors import DependencyCycleError, DuplicateDeclarationError

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(self):
        self._resources = {}
        self._requires = {}
        self._notifies = {}

    def __len__(self):
        return len(self._resources)

    def __iter__(self):
        return iter(self._resources.values())

    def __contains__(self, ref):
        return self._ref(ref) in self._resources

    def __getitem__(self, ref):
        return self._resources[self._ref(ref)]

    @staticmethod
    def _ref(resource):
        if isinstance(resource, str):
            return resource
        return resource.ref

    def _known_ref(self, resource):
        ref = self._ref(resource)
        if ref not in self._resources:
            raise KeyError(f'{ref} is not declared in this catalog')
        return ref

    def add(self, resource):
        """Add a resource, it must not be declared yet.
        """
        if resource.ref in self._resources:
            raise DuplicateDeclarationError(
                f'Duplicate declaration: {resource.ref} is already declared')
        logger.debug('Declared %s', resource.ref)
        self._resources[resource.ref] = resource
        self._requires[resource.ref] = set()
        self._notifies[resource.ref] = set()
        return resource

    def ensure_resource(self, resource):
        """Add a resource unless an identical one is already declared.

        Returns the resource held by the catalog.

        >>> from sysdecl.resources import Exec
        >>> catalog = Catalog()
        >>> first = catalog.ensure_resource(Exec('refresh', ('true',)))
        >>> catalog.ensure_resource(Exec('refresh', ('true',))) is first
        True
        >>> catalog.ensure_resource(Exec('refresh', ('false',)))
        Traceback (most recent call last):
        ...
        sysdecl.errors.DuplicateDeclarationError: Duplicate declaration: Exec[refresh] is already declared with other parameters
        """
        existing = self._resources.get(resource.ref)
        if existing is None:
            return self.add(resource)
        if existing != resource:
            raise DuplicateDeclarationError(
                f'Duplicate declaration: {resource.ref} is already declared'
                ' with other parameters')
        return existing

    def before(self, first, then):
        """Apply `first` before `then`"""
        first_ref = self._known_ref(first)
        then_ref = self._known_ref(then)
        self._requires[then_ref].add(first_ref)

    def notify(self, source, target):
        """Apply `source` before `target` and refresh `target` if `source`
        changed."""
        self.before(source, target)
        self._notifies[self._ref(source)].add(self._ref(target))

    def chain(self, *resources):
        """Order the resources as given, each before the next one"""
        for first, then in zip(resources, resources[1:]):
            self.before(first, then)

    def requires(self, resource):
        """References of the resources applied before `resource`"""
        return frozenset(self._requires[self._known_ref(resource)])

    def notified_by(self, resource):
        """References of the resources that refresh `resource`"""
        ref = self._known_ref(resource)
        return frozenset(source for source, targets in self._notifies.items()
                         if ref in targets)

    def resources(self, type=None):
        """The declared resources, optionally only those of a type"""
        return [resource for resource in self
                if type is None or resource.type == type]

    def ordered(self):
        """The resources in the order they must be applied.

        Among the resources whose requirements are met, the one declared
        first comes first, so unrelated declarations are applied one after
        the other.
        """
        index = {ref: position
                 for position, ref in enumerate(self._resources)}
        sorter = TopologicalSorter(self._requires)
        try:
            sorter.prepare()
        except CycleError as err:
            cycle = ' -> '.join(err.args[1])
            raise DependencyCycleError(
                f'Found a dependency cycle: {cycle}') from err
        ready = []
        ordered = []
        while sorter.is_active():
            for ref in sorter.get_ready():
                heapq.heappush(ready, (index[ref], ref))
            _, ref = heapq.heappop(ready)
            ordered.append(self._resources[ref])
            sorter.done(ref)
        return ordered
