"""
Durable record caches.

:class:`~warden.storage.record_cache.DurableRecordCache` keeps a bounded,
newest-first list in memory and writes it as one JSON blob under a versioned
key. Reports, bans and the audit log are its instances.
"""
