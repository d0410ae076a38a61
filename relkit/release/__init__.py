"""Release pipeline.

- validation / describe / semver / target: gates that never mutate anything
- manifest / lockfile / tagging: version bump and its git bookkeeping
- package / upload: build and publish the distributable
- service: entry points sequencing the stages
"""
