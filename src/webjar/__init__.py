"""WebJar contents: archives, exclude globs, POMs, licenses and source URLs."""
