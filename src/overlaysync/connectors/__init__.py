# SPDX-License-Identifier: Apache-2.0
"""Network connectors used to reach remote catalog and imagery services."""
