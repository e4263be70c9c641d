"""Example usage of the typed_hash library."""

from dataclasses import dataclass
from typing import ClassVar

from typed_hash import Hash, MatchPolicy, Ref, hash_of, hashify

# Define a hash using the literal syntax. Keys may repeat with different types.
settings = Hash.parse("""
    host => "localhost",
    port => 8080,
    port => "http-alt",    # same key, different type
    debug => true,
    limits => { requests => 100, burst => 20 }
""")

print(f"Hash: {settings}")
print(f"  {settings.length} entries, keys: {sorted(settings.keys())}")

# Dynamic lookups return boxed values
print(f"\nsettings['port'] = {settings['port']!r}")
print(f"settings['missing'] = {settings['missing']!r}")

# Typed lookups select among duplicates by type
port = Ref(int)
settings.get("port", port)
print(f"\nport as int: {port.value}")
print(f"port as str: {settings.value('port', str)}")
print(f"nested burst: {settings.value('limits').value('burst')}")

# Later definitions can override earlier ones when asked to
overrides = hash_of(port=9090)
merged = settings + overrides
print(f"\nmerged port (first): {merged.value('port', int)}")
print(f"merged port (last):  {merged.value('port', int, MatchPolicy.LAST)}")


# Project a hash onto a record
@dataclass
class Server:
    host: str = ""
    port: int = 0
    debug: bool = False
    workers: int = 1


server = merged.apply(Server(), MatchPolicy.LAST)
print(f"\nProjected: {server}")


# Initialize static fields once, when the class is defined
@hashify(table="users", primary_key="id")
class UserTable:
    table: ClassVar[str] = ""
    primary_key: ClassVar[str] = ""


print(f"UserTable: table={UserTable.table!r}, primary_key={UserTable.primary_key!r}")
