"""Built-in CLI sub-commands for specgraph.

* :mod:`~specgraph.commands.inspect` -- ``operations``, ``schemas``,
  ``relationships`` and ``mutual``, registered directly on the root app.
* :mod:`~specgraph.commands.config` -- the ``config`` sub-command group.
"""
