"""Client and request messages of a replicated key/value service."""