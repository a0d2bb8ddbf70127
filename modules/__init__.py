"""
Cues CLI modules.

Intentionally avoids importing submodules at package load time so that
`modules.dates` can be used on its own without pulling in requests or rich.
"""
