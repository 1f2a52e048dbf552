# elblogs

Parse AWS Elastic Load Balancer access log lines into structured entries,
read log objects from an S3 bucket, and hand the entries out one at a time
as JSON-encoded events with named fields that can be extracted.

The package has no third-party dependencies.

## Parsing a single log line

```python
from elblogs.logentry import ElbLogEntry, ElbLogError, parse_elb_log_line

entry = parse_elb_log_line(line)
print(entry.client_ip, entry.client_port, entry.elb_status_code, entry.request_url)

text = entry.to_json()
assert ElbLogEntry.from_json(text) == entry
```

The line is split shell-style, so a quoted string counts as one field. It
must hold exactly 30 fields. Otherwise `parse_elb_log_line` raises
`ElbLogError`, which is a subclass of `ValueError`. The parser also treats
these fields specially:

- The client and target `ip:port` fields are split at `:`. A value of `-`
  gives the IP `-` and port `0`.
- The quoted request field is split into `request_verb`, `request_url` and
  `request_proto`.
- Surrounding double quotes are removed from the quoted string fields.
- Ports, the ELB status code and the byte counts are read as unsigned
  integers. The processing times are read as floats. A value that cannot be
  read, or that is out of range, becomes `0` or `0.0`. A processing time of
  `-1` stays `-1.0`.

`ElbLogEntry` is a frozen dataclass. `to_json()` writes compact JSON with the
fields in order. `from_json()` accepts `str` or `bytes`. It raises
`ElbLogError` when the JSON is invalid, when a field is missing, or when a
field has the wrong type.

## Reading log objects from S3

```python
from elblogs.s3source import download_and_parse_object, list_objects, parse_log_content

keys = list_objects(s3_client, "my-log-bucket", "AWSLogs/", None)
entries = download_and_parse_object(s3_client, "my-log-bucket", keys[0])
```

You supply `s3_client`. It can be any object that offers these two calls,
which a boto3 S3 client does:

- `list_objects_v2(Bucket=..., Prefix=..., StartAfter=...)`
- `get_object(Bucket=..., Key=...)`

The `Body` returned by `get_object` may be a readable stream or plain bytes.

- `list_objects` makes one listing call. It returns, sorted, the keys that
  end in `.log` or `.log.gz`. When `start_after` is given, it is passed on as
  `StartAfter`.
- `download_and_parse_object` gunzips keys ending in `.gz` and decodes the
  data as UTF-8. It raises `ElbLogError` when either step fails. It then
  parses the text with `parse_log_content`.
- `parse_log_content` skips blank lines and lines that start with `#`. A line
  that fails to parse is logged as a warning on the `elblogs.s3source` logger
  and then left out.

## Streaming events

```python
from elblogs.plugin import AwsElbPlugin, Config, NoEventsError

config = Config.from_json(
    '{"region": "us-east-1", "s3Bucket": "my-log-bucket", "s3Prefix": "AWSLogs/"}'
)
plugin = AwsElbPlugin(config, s3_client)
instance = plugin.open(None)

try:
    batch = instance.next_batch()
except NoEventsError:
    batch = []  # nothing new yet; call again later

for payload in batch:
    print(plugin.event_to_string(payload))
    print(plugin.extract("awselb.client_ip", payload))
```

`Config.from_json` reads the camelCase keys `region`, `s3Bucket` and
`s3Prefix`. All three are required strings. If one is missing or is not a
string, it raises `ValueError`.

Each call to `next_batch` returns a list of at most one event, encoded as
UTF-8 JSON bytes. The instance works through these steps:

1. It first hands out the entries it already holds.
2. When those run out, it lists objects that come after the last key it
   processed (`instance.last_processed_key`).
3. It downloads the next listed object and returns that object's first
   entry. If the object has no entries, the list is empty.
4. If there are no new objects, it waits `idle_sleep` seconds (1.0 by
   default, set through the `AwsElbPlugin` constructor) and raises
   `NoEventsError`.

`event_to_string` returns the event's JSON text, or `{}` when the payload is
`None`.

`plugin.fields()` returns `(name, description)` pairs for every field that
`extract` accepts, such as `awselb.request_verb`, `awselb.name` and
`awselb.target_processing_time`. The values come back in these forms:

- Client and target ports, the ELB status code and the byte counts come back
  as integers.
- The three processing times come back as plain decimal strings, such as
  `"0.023"` or `"-1"`.
- Every other field comes back as a string.

`extract` raises errors in these cases:

- An unknown field name raises `ValueError`.
- A `None` payload raises `ElbLogError`.

## What the package does not do

- It does not create or configure an S3 client. You pass one in. The
  `region` in `Config` is read and kept but not otherwise used.
- It has no command-line tool and no background service. Events are pulled
  by calling `next_batch` yourself.
- It does not support IPv6 addresses in the client and target fields.