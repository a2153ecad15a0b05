import inspect
from collections import defaultdict, deque
from typing import Iterable, get_origin, get_args, Type, TypeVar
from dependency_injector import containers, providers
from mongodata.ioc.component import ProviderType, get_component_key, component
from mongodata.context import context

T = TypeVar("T")


class AppContainer(containers.DynamicContainer):
    """Container whose providers are derived from the component registry."""

    def __init__(self):
        super().__init__()
        self._built = False

    @property
    def built(self) -> bool:
        return self._built

    def _collect_nodes(self, component_registry):
        nodes = {}
        for key, meta in component_registry.items():
            cls = meta["cls"]
            provider_type = meta["provider_type"]

            deps = set()
            param_map = {}

            if provider_type not in (ProviderType.OBJECT, ProviderType.LIST):
                if inspect.isclass(cls):
                    params = (
                        p
                        for p in inspect.signature(cls.__init__).parameters.values()
                        if p.name != "self"
                    )
                elif callable(cls):
                    params = inspect.signature(cls).parameters.values()
                else:
                    params = []

                for p in params:
                    if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                        continue
                    if p.annotation is inspect.Parameter.empty:
                        continue
                    dep_key = get_component_key(p.annotation)
                    if dep_key not in component_registry:
                        if p.default is not inspect.Parameter.empty:
                            continue
                        raise ValueError(f"Missing dependency: {dep_key} (required by {key})")
                    deps.add(dep_key)
                    param_map[dep_key] = p.name

            nodes[key] = {
                "cls": cls,
                "provider_type": provider_type,
                "value": meta.get("value"),
                "deps": deps,
                "param_map": param_map,
                "list_members": [],
            }
        return nodes

    @staticmethod
    def _collect_list_members(nodes, component_registry):
        # A LIST depends on every registered class that subclasses its element type.
        for key, info in nodes.items():
            if info["provider_type"] != ProviderType.LIST:
                continue
            list_type = info["cls"]
            if get_origin(list_type) is not list:
                raise ValueError(f"LIST component {key} must be of type List[BaseClass]")
            base_class = get_args(list_type)[0]

            members = []
            for comp_key, comp_meta in component_registry.items():
                if comp_key == key or comp_meta["provider_type"] == ProviderType.LIST:
                    continue
                comp_cls = comp_meta["value"] if comp_meta["provider_type"] == ProviderType.OBJECT else comp_meta["cls"]
                candidate = comp_cls if inspect.isclass(comp_cls) else type(comp_cls)
                if (
                    inspect.isclass(candidate)
                    and candidate is not base_class
                    and issubclass(candidate, base_class)
                ):
                    members.append(comp_key)

            info["list_members"] = members
            info["deps"].update(members)

    def _create_provider(self, key, info):
        kwargs = {}
        for dep_key, param_name in info["param_map"].items():
            dep_provider = getattr(self, dep_key, None)
            if dep_provider is None:
                raise AttributeError(
                    f"Dependency provider '{dep_key}' not found when building '{key}'"
                )
            kwargs[param_name] = dep_provider

        cls = info["cls"]
        provider_type = info["provider_type"]
        if provider_type == ProviderType.SINGLETON:
            return providers.Singleton(cls, **kwargs)
        if provider_type == ProviderType.FACTORY:
            return providers.Factory(cls, **kwargs)
        if provider_type == ProviderType.RESOURCE:
            return providers.Resource(cls, **kwargs)
        if provider_type == ProviderType.OBJECT:
            return providers.Object(info["value"])
        if provider_type == ProviderType.LIST:
            return providers.List(*(getattr(self, m) for m in info["list_members"]))
        raise ValueError(f"Unsupported provider type: {provider_type}")

    def _build(self):
        component_registry = context.component_registry
        nodes = self._collect_nodes(component_registry)
        self._collect_list_members(nodes, component_registry)

        deps_by_node = {k: set(v["deps"]) for k, v in nodes.items()}
        dependents_by_dep = defaultdict(set)
        for node, deps in deps_by_node.items():
            for d in deps:
                dependents_by_dep[d].add(node)

        indegree = {k: len(deps) for k, deps in deps_by_node.items()}
        queue = deque([k for k in component_registry if indegree.get(k, 0) == 0])
        resolved = set()

        while queue:
            key = queue.popleft()
            provider = self._create_provider(key, nodes[key])
            setattr(self, key, provider)
            component_registry[key]["provider"] = provider
            resolved.add(key)

            for dependent in dependents_by_dep.get(key, ()):
                indegree[dependent] -= 1
                if indegree[dependent] == 0 and dependent not in resolved:
                    queue.append(dependent)

        if len(resolved) != len(component_registry):
            pending = [k for k in component_registry if k not in resolved]
            details = {k: sorted(deps_by_node[k]) for k in pending}
            raise RuntimeError(
                f"Unresolved components (possible cycle or missing deps): {pending}. "
                f"Deps: {details}"
            )

        self._built = True

    def get(self, cls: Type[T]) -> T:
        """Return the instance provided for a registered type."""
        key = get_component_key(cls)

        if key not in context.component_registry:
            raise ValueError(f"Component {cls} is not registered in the container")

        if not self._built:
            self._build()

        provider = getattr(self, key, None)
        if provider is None:
            raise RuntimeError(f"Provider for {cls} is not available")

        return provider()

    def override_component(self, cls: Type[T], value: T) -> None:
        """Provide ``value`` for ``cls`` instead of its registered provider."""
        key = get_component_key(cls)
        if key not in context.component_registry:
            raise ValueError(f"Component {cls} is not registered in the container")

        if not self._built:
            self._build()

        getattr(self, key).override(providers.Object(value))

    def reset_component_override(self, cls: Type[T]) -> None:
        provider = getattr(self, get_component_key(cls), None)
        if provider is not None:
            provider.reset_override()

    def wire(self, modules: Iterable[str]):
        if not self._built:
            self._build()
        super().wire(modules=list(modules))

    def unwire(self):
        super().unwire()


container = AppContainer()

component(AppContainer, provider_type=ProviderType.OBJECT, value=container)
