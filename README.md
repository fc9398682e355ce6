# multirole

Server-side building blocks for hosting duels of a collectible card game.
The package uses only the Python standard library and needs Python 3.10 or
later.

## Modules

- `multirole.constants` – location, message, position, scope, query, card
  type and win-reason constants of the duel core protocol.
- `multirole.common` – shared structures and enumerations:
  `ClientVersion` and `HostInfo` (both with `to_bytes` / `from_bytes`),
  `CardData`, `Player`, `NewCardInfo`, `QueryInfo`, `AllowedCards`,
  `ExtraRule`, `LogType`, `DuelCreationStatus`, `DuelStatus`, `Action`,
  plus `or_duel_flags`, `SERVER_VERSION` and `SERVER_HANDSHAKE`.
- `multirole.deck` – `Deck` (with `code_map()` counting every card code),
  `DeckLimits` and `Boundary`.
- `multirole.banlist` – `Banlist` (`whitelist`, `entries`),
  `parse_banlists` and the `salt` hash step. Malformed card lines raise
  `BanlistParseError`, which carries the line number.
- `multirole.query` – `LocInfo`, `Query`, and `serialize_single_query`,
  `serialize_location_query`, `deserialize_single_query`,
  `deserialize_location_query`. Serialising can drop the fields that reveal
  a card when it is hidden or when a public view is asked for.
- `multirole.messages` – `split_to_msgs`, `get_message_type`,
  `does_message_require_answer`, `get_message_distribution_type`
  (returning a `MsgDistType`), `get_message_receiving_team`,
  `strip_message_for_team`, `get_pre_dist_query_requests`,
  `get_post_dist_query_requests` (returning `QuerySingleRequest` and
  `QueryLocationRequest` records), and the builders `make_start_msg`,
  `make_update_card_msg` and `make_update_data_msg`.
- `multirole.card_database` – `CardDatabase`, an SQLite store that merges
  several card database files (`merge`) and answers `data_from_code` and
  `extra_from_code` lookups from a cache. Usable as a context manager.
- `multirole.ctos` – `CTOSMsg`, a client packet with `is_header_valid()`,
  a bounded `reader()` (raising `BodyOverrun` on reads past the body) and
  typed getters such as `get_join_game()` that return `None` when the body
  size does not match.
- `multirole.stoc` – `STOCMsg` server packets, built from a type and raw
  payload or with `STOCMsg.from_payload` from records such as `ErrorMsg`,
  `DeckErrorMsg`, `JoinGameReply`, `PlayerEnter` or `Chat2`.
- `multirole.process` – `launch` starts a program and returns a
  `ChildProcess` (`is_running`, `wait`, `kill`); `set_close_on_exec` keeps a
  file descriptor from being inherited.
- `multirole.observer` – `GitRepoObserver`, the abstract interface with
  `on_add` and `on_diff`, and `GitDiff`.
- `multirole.banlist_provider`, `multirole.data_provider`,
  `multirole.script_provider` – observers that keep banlists
  (`get_banlist_by_hash`), a merged card database (`get_database`) and
  script contents (`script_from_file_path`, returning bytes) for files whose
  names match a regular expression.
- `multirole.replay_manager` – `ReplayManager`, which hands out replay ids
  stored in a `lastId` file (`new_id`, locked across threads and processes)
  and writes replays as `<id>.yrpX` (`save`).

## Examples

```python
from multirole.banlist import parse_banlists

banlists = {}
with open("lflist.conf", encoding="utf-8") as f:
    parse_banlists(f, banlists)

for hash_value, banlist in banlists.items():
    print(hex(hash_value), banlist.whitelist, len(banlist.entries))
```

```python
from multirole.messages import split_to_msgs, get_message_distribution_type

for msg in split_to_msgs(core_output):
    print(msg[0], get_message_distribution_type(msg))
```

## What it does not do

- It does not run duels: there is no duel core and nothing that loads one.
  The message and query functions work on byte buffers that a core produces.
- It has no network server and no command-line program; `CTOSMsg` and
  `STOCMsg` only encode and decode packets.
- It does not clone or watch repositories. The providers must be given
  file lists through `on_add` and `on_diff` by the caller.

## Running the tests

```
pip install -e ".[test]"
pytest
```