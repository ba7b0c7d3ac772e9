"""
ServiceDesk Pricing - Calculation Cache
TTL memoization for the expensive engine steps (team cost, tax, ROI).
One region per input domain; invalidation clears whole regions.
"""
import base64
import copy
import hashlib
import json
import logging
import threading
import time

TEAM_COSTS = 'team_costs'
TAX_CALCULATIONS = 'tax_calculations'
ROI_ANALYSIS = 'roi_analysis'

# Changed input domain -> cache regions that depend on it
INVALIDATION_MAP = {
    'team': (TEAM_COSTS,),
    'schedules': (TEAM_COSTS,),
    'taxes': (TAX_CALCULATIONS,),
    'variables': (ROI_ANALYSIS,),
    'budget': (ROI_ANALYSIS,),
}


def make_cache_key(data, operation):
    """operation_base64(shortHash(serialized input))."""
    serialized = json.dumps(data, sort_keys=True, default=str, separators=(',', ':'))
    digest = hashlib.sha256(serialized.encode('utf-8')).digest()[:12]
    return f"{operation}_{base64.urlsafe_b64encode(digest).decode('ascii')}"


class CalculationCache:
    """Insertion-ordered store with per-entry TTL (seconds).

    When full, the oldest inserted entry is evicted, regardless of how
    recently it was read.
    """

    def __init__(self, max_size=100, default_ttl=300, clock=None):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry['timestamp'] > entry['ttl']:
                del self._entries[key]
                logging.debug(f"cache: expired {key}")
                return None
            return entry['value']

    def set(self, key, value, ttl=None):
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logging.debug(f"cache: evicted {oldest}")
            self._entries[key] = {'value': value, 'timestamp': self._clock(),
                                  'ttl': self.default_ttl if ttl is None else ttl}

    def __contains__(self, key):
        return key in self._entries

    def __len__(self):
        return len(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def clear_expired(self):
        with self._lock:
            now = self._clock()
            stale = [k for k, e in self._entries.items() if now - e['timestamp'] > e['ttl']]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def stats(self):
        return {'size': len(self._entries), 'maxSize': self.max_size,
                'entries': list(self._entries)}


class ServiceDeskCache:
    """Named cache regions for team-cost, tax and ROI results.

    Constructed explicitly and handed to the engines; nothing here is global.
    """

    def __init__(self, max_size=200, team_ttl=600, tax_ttl=600, roi_ttl=300, clock=None):
        self.regions = {
            TEAM_COSTS: CalculationCache(max_size, team_ttl, clock),
            TAX_CALCULATIONS: CalculationCache(max_size, tax_ttl, clock),
            ROI_ANALYSIS: CalculationCache(max_size, roi_ttl, clock),
        }

    @classmethod
    def from_params(cls, params, clock=None):
        return cls(max_size=int(params.get('cacheMaxSize', 200)),
                   team_ttl=params.get('teamCacheTTL', 600),
                   tax_ttl=params.get('taxCacheTTL', 600),
                   roi_ttl=params.get('roiCacheTTL', 300),
                   clock=clock)

    def region(self, name):
        if name not in self.regions:
            raise KeyError(f"unknown cache region '{name}'")
        return self.regions[name]

    def lookup(self, region, data):
        """A copy of the cached value (or None); edits by the caller never reach the cache."""
        key = make_cache_key(data, region)
        value = self.region(region).get(key)
        logging.debug(f"cache: {'hit' if value is not None else 'miss'} {key}")
        return copy.deepcopy(value)

    def store(self, region, data, value):
        self.region(region).set(make_cache_key(data, region), copy.deepcopy(value))

    def get_team_costs(self, team_data):
        return self.lookup(TEAM_COSTS, team_data)

    def cache_team_costs(self, team_data, result):
        self.store(TEAM_COSTS, team_data, result)

    def get_tax_calculations(self, tax_data):
        return self.lookup(TAX_CALCULATIONS, tax_data)

    def cache_tax_calculations(self, tax_data, result):
        self.store(TAX_CALCULATIONS, tax_data, result)

    def get_roi_analysis(self, roi_data):
        return self.lookup(ROI_ANALYSIS, roi_data)

    def cache_roi_analysis(self, roi_data, result):
        self.store(ROI_ANALYSIS, roi_data, result)

    def invalidate(self, changed_domain):
        """Clear every region depending on the changed input domain."""
        if changed_domain not in INVALIDATION_MAP:
            raise KeyError(f"unknown input domain '{changed_domain}'")
        cleared = []
        for name in INVALIDATION_MAP[changed_domain]:
            self.regions[name].clear()
            cleared.append(name)
        logging.info(f"cache: '{changed_domain}' changed, cleared {', '.join(cleared)}")
        return cleared

    def clear_all(self):
        for r in self.regions.values():
            r.clear()

    def stats(self):
        return {name: r.stats() for name, r in self.regions.items()}
