from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChainEntrySchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chain_id: int = Field(..., gt=0, alias="chainId", description="Numeric EVM chain id.")
    name: str = Field(..., min_length=1, description="Human readable chain name.")
    rpc_url: str = Field("", alias="rpcUrl", description="JSON-RPC endpoint; empty disables the chain.")
    factory_address: str = Field(..., alias="factoryAddress", description="Uniswap v3 factory (0x...).")
    token_list_path: str = Field(..., alias="tokenListPath", description="Token list JSON, relative to the registry.")
    known_routers: list[str] = Field(default_factory=list, alias="knownRouters")
    from_block: int = Field(0, ge=0, alias="fromBlock", description="Seed block for the first run.")


class ChainRegistrySchema(BaseModel):
    chains: dict[str, ChainEntrySchema]


class TokenEntrySchema(BaseModel):
    address: str
    symbol: str = Field(..., min_length=1)
    decimals: int | None = Field(None, ge=0, le=255)


class TokenListSchema(BaseModel):
    tokens: list[dict]
